"""Command line interface for verse-py."""

from __future__ import annotations

from verse_py.cli.app import app, main

__all__ = ["app", "main"]
