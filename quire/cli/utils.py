"""CLI utility functions for quire.

Output helpers, document loading and configuration loading shared by the CLI
commands.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from quire.config import QuireConfig, configure_logging, load_config

console = Console()


def load_config_for_cli(config_file: Path | None, verbose: bool) -> QuireConfig:
    """Load configuration and apply its logging settings.

    Parameters
    ----------
    config_file : Path | None
        YAML configuration file (None to use defaults and environment).
    verbose : bool
        Whether to force DEBUG logging.

    Returns
    -------
    QuireConfig
        Loaded configuration.
    """
    try:
        if verbose:
            config = load_config(config_path=config_file, logging__level="DEBUG")
        else:
            config = load_config(config_path=config_file)
    except FileNotFoundError:
        print_error(f"Configuration file not found: {config_file}")
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
    configure_logging(config.logging)
    return config


def load_document(path: Path) -> Any:
    """Read a JSON or YAML document from disk.

    Files ending in ``.json`` are parsed as JSON, anything else as YAML.

    Parameters
    ----------
    path : Path
        Document path.

    Returns
    -------
    Any
        Parsed document.

    Raises
    ------
    ValueError
        If the document cannot be parsed.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Could not parse {path}: {e}") from e


def modes_table(study_id: str, modes: Mapping[str, bool]) -> Table:
    """Render feature flags as a table.

    Parameters
    ----------
    study_id : str
        Study identifier used as the title.
    modes : Mapping[str, bool]
        Flag values by name.

    Returns
    -------
    Table
        Rich table with one row per flag.
    """
    table = Table(title=f"Modes for {study_id}")
    table.add_column("Mode", style="cyan")
    table.add_column("Enabled")
    for name, enabled in modes.items():
        table.add_row(name, "[green]yes[/green]" if enabled else "[red]no[/red]")
    return table


def print_error(message: str, exit_code: int = 1) -> None:
    """Print error message and exit.

    Parameters
    ----------
    message : str
        Error message to display.
    exit_code : int
        Exit code (default: 1). Pass 0 to not exit.
    """
    console.print(f"[red]✗ Error:[/red] {message}")
    if exit_code != 0:
        sys.exit(exit_code)


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓ {message}[/green]")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]ℹ Info:[/blue] {message}")
