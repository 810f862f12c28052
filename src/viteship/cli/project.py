"""
Project commands for the viteship CLI.

- init: write viteship.toml seeded from analysis
- analyze: workflow step 1
- guide: print the workflow
- templates: list the template store
- commit-info: resolve commit metadata / write commit.txt
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.panel import Panel
from rich.table import Table

from viteship.core.commit_info import COMMIT_FILENAME, resolve_commit_info, write_commit_file
from viteship.core.config import (
    CONFIG_FILENAME,
    DockerfileVariant,
    ViteshipConfig,
    render_config_toml,
)
from viteship.core.errors import ViteshipError
from viteship.core.project import analyze_project
from viteship.scaffold.templates import TemplateStore, list_templates
from viteship.scaffold.workflow import WORKFLOW, next_step

from .utils import console, fail, load_project, print_warnings

ProjectOption = Annotated[
    Path,
    typer.Option(
        "--project",
        "-p",
        help="Project directory (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
]


def init_command(
    project_dir: ProjectOption = Path("."),
    variant: Annotated[
        DockerfileVariant,
        typer.Option("--variant", help="Dockerfile variant"),
    ] = DockerfileVariant.MULTISTAGE,
    registry: Annotated[
        str,
        typer.Option("--registry", help="Image registry, e.g. ghcr.io/my-org"),
    ] = "ghcr.io",
    port: Annotated[int, typer.Option("--port", help="Host port for compose")] = 3000,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing viteship.toml"),
    ] = False,
) -> None:
    """
    Create viteship.toml from the detected project settings.

    Examples:
        viteship init
        viteship init --variant prebuilt --registry ghcr.io/acme
    """
    root = project_dir.resolve()
    toml_path = root / CONFIG_FILENAME

    if toml_path.exists() and not force:
        fail(f"{toml_path} already exists (use --force to replace it)")

    settings: dict[str, dict[str, Any]] = {
        "image": {"registry": registry},
        "server": {"port": port},
        "build": {"variant": variant},
    }
    try:
        config = ViteshipConfig.model_validate(settings)
    except ValueError as e:
        fail(str(e))

    try:
        profile = analyze_project(root, config)
    except ViteshipError as e:
        fail(str(e))

    settings["image"]["name"] = profile.name
    settings["build"].update(
        package_manager=profile.package_manager,
        node_version=profile.node_version,
        build_command=profile.build_command,
        output_dir=profile.output_dir,
    )
    try:
        config = ViteshipConfig.model_validate(settings)
    except ValueError as e:
        fail(f"detected settings are not valid: {e}")

    toml_path.write_text(render_config_toml(config))
    console.print(f"[green]✓[/green] Wrote {toml_path}")
    print_warnings(profile.warnings)

    step = next_step("analyze")
    if step:
        console.print(f"\nNext: [cyan]{step.command}[/cyan]")


def analyze_command(project_dir: ProjectOption = Path(".")) -> None:
    """
    Step 1: detect how the project is built.

    Reads package.json, lockfiles, .nvmrc/.node-version and vite.config.*;
    values from viteship.toml take precedence.
    """
    root, config, profile = load_project(project_dir)

    table = Table(title=f"Project analysis: {root}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in profile.summary().items():
        table.add_row(key.replace("_", " "), str(value))
    table.add_row("variant", config.build.variant.value)
    table.add_row("image", f"{config.image.registry}/{profile.name}:{config.image.tag}")
    console.print(table)

    if profile.vite_env_vars:
        console.print(f"\nVITE_* variables: {', '.join(profile.vite_env_vars)}")

    if profile.warnings:
        console.print()
        print_warnings(profile.warnings)

    step = next_step("analyze")
    if step:
        console.print(f"\nNext: [cyan]{step.command}[/cyan]")


def guide_command() -> None:
    """Print the four-step deployment workflow."""
    for step in WORKFLOW:
        console.print(
            Panel(
                f"{step.summary}\n\n[cyan]$ {step.command}[/cyan]",
                title=f"Step {step.number}: {step.title}",
                title_align="left",
            )
        )


def templates_command(
    show: Annotated[
        str | None,
        typer.Option("--show", "-s", help="Print the raw source of one template"),
    ] = None,
) -> None:
    """List the templates viteship can render."""
    if show:
        try:
            source = TemplateStore().source(show)
        except ViteshipError as e:
            fail(str(e))
        typer.echo(source, nl=False)
        return

    table = Table(title="Templates")
    table.add_column("Key", style="cyan")
    table.add_column("Output")
    table.add_column("Group")
    table.add_column("Description")
    for spec in list_templates():
        table.add_row(spec.key, spec.target, spec.group, spec.description)
    console.print(table)


def commit_info_command(
    project_dir: ProjectOption = Path("."),
    commit_hash: Annotated[
        str | None,
        typer.Option(
            "--hash",
            envvar="VITE_GIT_COMMIT_HASH",
            help="Commit hash (default: git rev-parse --short HEAD)",
        ),
    ] = None,
    commit_date: Annotated[
        str | None,
        typer.Option(
            "--date",
            envvar="VITE_GIT_COMMIT_DATE",
            help="Commit date (default: git log -1 --format=%cI)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help=f"Write {COMMIT_FILENAME} here instead of stdout"),
    ] = None,
) -> None:
    """
    Resolve commit metadata the way the Dockerfile does.

    Explicit values win, then git, then "unknown".

    Examples:
        viteship commit-info
        viteship commit-info -o dist/commit.txt
    """
    info = resolve_commit_info(project_dir.resolve(), commit_hash, commit_date)

    if output:
        write_commit_file(info, output)
        console.print(f"[green]✓[/green] Wrote {output}")
    else:
        typer.echo(info.render(), nl=False)
