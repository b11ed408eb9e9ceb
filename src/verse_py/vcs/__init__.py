"""Version control integration."""

from __future__ import annotations

from verse_py.vcs.git import GitRepository, GitTag, analyze_module_commits, parse_tag_name

__all__ = ["GitRepository", "GitTag", "analyze_module_commits", "parse_tag_name"]
