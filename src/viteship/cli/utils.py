"""
viteship CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from viteship._version import get_version
from viteship.core.config import CONFIG_FILENAME, ViteshipConfig, load_config
from viteship.core.errors import ViteshipError
from viteship.core.project import ProjectProfile, analyze_project

console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging; VITESHIP_LOG_LEVEL overrides the default level."""
    if verbose:
        level = logging.DEBUG
    else:
        name = os.getenv("VITESHIP_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"viteship version {get_version()}")
        typer.echo("")
        typer.echo("Environment:")
        typer.echo(
            f"  Python:        {platform.python_implementation()} {platform.python_version()}"
        )
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


def load_project(project_dir: Path) -> tuple[Path, ViteshipConfig, ProjectProfile]:
    """Load configuration and analyze a project, exiting cleanly on failure."""
    root = project_dir.resolve()
    try:
        config = load_config(root / CONFIG_FILENAME)
        profile = analyze_project(root, config)
    except ViteshipError as e:
        fail(str(e))
    return root, config, profile


def print_warnings(warnings: list[str]) -> None:
    """Print warnings in yellow."""
    for warning in warnings:
        console.print(f"  [yellow]Warning:[/yellow] {warning}")
