"""Implementation of the 'update' command.

The update command computes the next version of every module. By default it
only previews the plan; with ``--execute`` it writes versions and
changelogs, commits them and tags the release commit.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

from verse_py.adapters import default_registry, resolve_adapter
from verse_py.config import load_config
from verse_py.core.changelog import generate_module_changelog, update_changelog_file
from verse_py.core.planner import plan_version_changes
from verse_py.exceptions import GitError
from verse_py.vcs import GitRepository, analyze_module_commits

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from rich.console import Console

    from verse_py.adapters.base import Adapter
    from verse_py.config import VerseConfig
    from verse_py.core.commits import CommitInfo
    from verse_py.core.planner import ModuleChange
    from verse_py.core.registry import ModuleRegistry

logger = logging.getLogger(__name__)


def tag_name_for(change: ModuleChange, config: VerseConfig) -> str:
    """``name@version`` for modules, ``<prefix>version`` for the root."""
    if change.module.is_root:
        return f"{config.git.root_tag_prefix}{change.to_version}"
    return f"{change.module.name}@{change.to_version}"


def run_update(
    path: Path | None,
    execute: bool,
    adapter_id: str | None,
    config_path: Path | None,
    prerelease: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the update command.

    Args:
        path: Optional path to the repository root
        execute: Whether to actually apply changes
        adapter_id: Adapter override; falls back to the config, then detection
        config_path: Explicit configuration file
        prerelease: Pre-release identifier (e.g., "alpha", "beta", "rc")
        console: Console for standard output
        err_console: Console for error output

    Raises:
        VerseError: If any step fails
    """
    project_path = (path or Path.cwd()).resolve()

    config = load_config(project_path, config_path)
    if prerelease:
        config = config.model_copy(
            update={
                "version": config.version.model_copy(
                    update={"prerelease_mode": True, "prerelease_id": prerelease}
                )
            }
        )

    repo = GitRepository(project_path)

    if execute and not config.git.allow_dirty and repo.is_dirty():
        err_console.print(
            "[red]Error:[/] Repository has uncommitted changes.\n"
            "Commit or stash them, or set [cyan]git.allow_dirty = true[/] in config."
        )
        raise SystemExit(1)

    adapter = resolve_adapter(default_registry(), project_path, adapter_id or config.adapter)
    detector = adapter.create_detector(
        project_path, config.get_adapter_config(adapter.metadata.id)
    )
    registry = detector.detect()

    module_commits = analyze_module_commits(repo, registry)
    short_sha = repo.get_short_sha() if config.version.add_build_metadata else None

    changes = plan_version_changes(
        registry,
        module_commits,
        config,
        short_sha=short_sha,
        supports_snapshots=adapter.metadata.capabilities.supports_snapshots,
    )

    if not changes:
        console.print("[yellow]No modules need a new version. Nothing to do.[/]")
        return

    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    console.print(f"\n{mode_str} - {len(changes)} module(s) to update\n")
    console.print(_changes_table(changes, config))

    if not execute:
        console.print(
            Panel(
                "[bold]Would make the following changes:[/]\n\n"
                f"  • Update versions through the [cyan]{adapter.metadata.id}[/] adapter\n"
                + (
                    f"  • Prepend [cyan]{config.changelog.filename}[/] in each module\n"
                    if config.changelog.enabled
                    else ""
                )
                + ("  • Commit the updated files\n" if config.git.commit else "")
                + ("  • Create release tags" if config.git.create_tags else ""),
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    committed = _apply_changes(
        adapter, registry, changes, module_commits, config, project_path, repo, console
    )

    next_step = (
        "Push: [cyan]git push --follow-tags[/]"
        if committed
        else f"Commit: [cyan]git add . && git commit -m '{config.git.commit_message}'[/]"
    )
    console.print(
        Panel(
            f"[green]Updated {len(changes)} module(s)![/]\n\n"
            "Next steps:\n"
            "  1. Review the changes\n"
            f"  2. {next_step}",
            title="[green]Update Complete[/]",
            border_style="green",
        )
    )


def _changes_table(changes: Sequence[ModuleChange], config: VerseConfig) -> Table:
    table = Table(title="Planned version changes")
    table.add_column("Module", style="cyan")
    table.add_column("From")
    table.add_column("To", style="green")
    table.add_column("Bump")
    table.add_column("Reason", style="dim")
    if config.git.create_tags:
        table.add_column("Tag")

    for change in changes:
        row = [
            change.module_id,
            str(change.from_version),
            change.to_version,
            str(change.bump_type),
            str(change.reason),
        ]
        if config.git.create_tags:
            row.append(tag_name_for(change, config))
        table.add_row(*row)
    return table


def _apply_changes(
    adapter: Adapter,
    registry: ModuleRegistry,
    changes: Sequence[ModuleChange],
    module_commits: Mapping[str, Sequence[CommitInfo]],
    config: VerseConfig,
    project_path: Path,
    repo: GitRepository,
    console: Console,
) -> bool:
    """Write versions and changelogs, then commit and tag them.

    Modules whose manifest does not declare a version (a private workspace
    root, a dynamic or inherited version) still took part in the cascade but
    get no written version, changelog or tag.

    Returns:
        True if a release commit was created
    """
    releasable = []
    for change in changes:
        if change.module.declared_version:
            releasable.append(change)
        else:
            logger.info("Module %s has no declared version, skipping", change.module_id)

    strategy = adapter.create_update_strategy(project_path, registry)
    written = strategy.write_version_updates({c.module_id: c.to_version for c in releasable})
    for manifest in written:
        console.print(f"  [green]✓[/] Updated {manifest.relative_to(project_path)}")

    if config.changelog.enabled:
        for change in releasable:
            section = generate_module_changelog(
                change,
                module_commits.get(change.module_id, ()),
                include_scope=config.changelog.include_scope,
                include_sha=config.changelog.include_sha,
            )
            changelog_path = project_path / change.module.path / config.changelog.filename
            update_changelog_file(changelog_path, section)
            written.append(changelog_path)
            console.print(f"  [green]✓[/] Updated {changelog_path.relative_to(project_path)}")

    committed = False
    if config.git.commit:
        repo.add_files(written)
        if repo.has_staged_changes():
            sha = repo.commit(config.git.commit_message)
            committed = True
            console.print(f"  [green]✓[/] Committed [cyan]{sha[:7]}[/]")

    if config.git.create_tags:
        for change in releasable:
            tag = tag_name_for(change, config)
            repo.create_tag(tag, f"Release {change.module.name} {change.to_version}")
            console.print(f"  [green]✓[/] Created tag [cyan]{tag}[/]")

        if config.git.push_tags:
            try:
                repo.push_tags()
            except GitError as e:
                logger.error("Failed to push tags: %s", e.stderr or e)
                raise
            console.print("  [green]✓[/] Pushed tags")

    return committed
