"""Implementation of the 'validate' command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from verse_py.config import load_config

if TYPE_CHECKING:
    from rich.console import Console


def run_validate(path: Path | None, config_path: Path | None, console: Console) -> None:
    """Load the configuration and print the effective settings.

    Raises:
        ConfigError: If the configuration cannot be read or is invalid
    """
    project_path = path or Path.cwd()
    config = load_config(project_path, config_path)

    console.print("[green]Configuration is valid.[/]")
    console.print_json(json.dumps(config.model_dump(mode="json")))
