"""
Scaffold commands for the viteship CLI.

Workflow steps 2-4: generate, env and verify.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from viteship.core.commit_info import resolve_commit_info
from viteship.core.config import CIProvider, DockerfileVariant
from viteship.core.errors import ViteshipError
from viteship.scaffold.envcheck import check_environment
from viteship.scaffold.generators import GeneratorRegistry
from viteship.scaffold.placeholders import Source
from viteship.scaffold.runner import FileAction, ScaffoldRunner
from viteship.scaffold.verify import build_image, image_reference, verify_scaffold
from viteship.scaffold.workflow import next_step

from .project import ProjectOption
from .utils import console, fail, load_project, print_warnings

ACTION_STYLES = {
    FileAction.CREATE: "green",
    FileAction.UPDATE: "cyan",
    FileAction.OVERWRITE: "magenta",
    FileAction.UNCHANGED: "dim",
    FileAction.SKIP: "yellow",
}

SOURCE_STYLES = {
    Source.ENVIRONMENT: "green",
    Source.DEFAULT: "cyan",
    Source.FALLBACK: "dim",
    Source.MISSING: "red",
}


def generate_command(
    project_dir: ProjectOption = Path("."),
    only: Annotated[
        list[str] | None,
        typer.Option(
            "--only",
            help=f"Run only these generators ({', '.join(GeneratorRegistry.names())})",
        ),
    ] = None,
    variant: Annotated[
        DockerfileVariant | None,
        typer.Option("--variant", help="Override the Dockerfile variant"),
    ] = None,
    no_ci: Annotated[
        bool,
        typer.Option("--no-ci", help="Skip the CI workflow"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace files edited since they were generated"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be written without writing"),
    ] = False,
) -> None:
    """
    Step 2: render deployment files into the project.

    Files edited by hand since the last run are left alone unless
    --force is given.

    Examples:
        viteship generate
        viteship generate --only docker --dry-run
        viteship generate --variant prebuilt --no-ci
    """
    root, config, profile = load_project(project_dir)

    if variant is not None:
        config.build.variant = variant
    if no_ci:
        config.ci.provider = CIProvider.NONE

    try:
        runner = ScaffoldRunner(root, config, profile)
    except ViteshipError as e:
        fail(str(e))

    result = runner.run(only=only, force=force, dry_run=dry_run)

    if result.planned:
        table = Table(title="Dry run" if dry_run else "Generated files")
        table.add_column("File")
        table.add_column("Template", style="dim")
        table.add_column("Action")
        for planned in result.planned:
            style = ACTION_STYLES[planned.action]
            table.add_row(
                planned.path.as_posix(),
                planned.template,
                f"[{style}]{planned.action.value}[/{style}]",
            )
        console.print(table)

    print_warnings(result.warnings)

    if not result.success:
        for error in result.errors:
            console.print(f"  [red]Error:[/red] {error}")
        fail(result.summary())

    console.print(f"\n[green]✓[/green] {result.summary()}")

    step = next_step("generate")
    if step and not dry_run:
        console.print(f"Next: [cyan]{step.command}[/cyan]")


def env_command(
    project_dir: ProjectOption = Path("."),
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit 1 if any required value is missing"),
    ] = False,
) -> None:
    """
    Step 3: show how each placeholder resolves.

    Reads the process environment and the project's .env file.
    """
    root, config, profile = load_project(project_dir)
    report = check_environment(root, config, profile, include_ci_secrets=config.ci.dokploy)

    table = Table(title="Environment")
    table.add_column("Variable", style="cyan")
    table.add_column("When")
    table.add_column("Source")
    table.add_column("Value")
    table.add_column("Fallback", style="dim")
    for resolved in report.resolved:
        style = SOURCE_STYLES[resolved.source]
        table.add_row(
            resolved.placeholder.name,
            resolved.placeholder.lifecycle.value,
            f"[{style}]{resolved.source.value}[/{style}]",
            resolved.display_value,
            resolved.placeholder.fallback_note or "",
        )
    console.print(table)

    if report.env_file:
        console.print(f"Read {report.env_file}")

    if report.missing_secrets:
        console.print(
            "\nAdd these as repository secrets for the deploy job: "
            + ", ".join(report.missing_secrets)
        )

    if strict and not report.complete:
        fail("missing: " + ", ".join(r.placeholder.name for r in report.missing))

    step = next_step("env")
    if step:
        console.print(f"\nNext: [cyan]{step.command}[/cyan]")


def verify_command(
    project_dir: ProjectOption = Path("."),
    build: Annotated[
        bool,
        typer.Option("--build", help="Also build the image with docker and check commit.txt"),
    ] = False,
    tag: Annotated[
        str | None,
        typer.Option("--tag", help="Tag for the test image (default: image.tag)"),
    ] = None,
    commit_hash: Annotated[
        str | None,
        typer.Option("--hash", envvar="VITE_GIT_COMMIT_HASH", help="Commit hash build arg"),
    ] = None,
    commit_date: Annotated[
        str | None,
        typer.Option("--date", envvar="VITE_GIT_COMMIT_DATE", help="Commit date build arg"),
    ] = None,
) -> None:
    """
    Step 4: check the generated files, optionally building the image.

    Examples:
        viteship verify
        viteship verify --build --tag local
    """
    root, config, profile = load_project(project_dir)
    result = verify_scaffold(root, config, profile)

    for message in result.passed:
        console.print(f"  [green]✓[/green] {message}")
    print_warnings(result.warnings)
    for error in result.errors:
        console.print(f"  [red]✗[/red] {error}")

    if not result.verified:
        fail(f"verification failed with {len(result.errors)} errors")

    if build:
        info = resolve_commit_info(root, commit_hash, commit_date)
        image = image_reference(config, profile, tag)
        console.print(f"\nBuilding {image} (commit {info.hash}, {info.date})")

        outcome = build_image(root, image, info)
        if not outcome.success:
            if outcome.output:
                console.print(outcome.output, markup=False, highlight=False)
            for error in outcome.errors:
                console.print(f"  [red]✗[/red] {error}")
            fail("image build failed")

        console.print(f"  [green]✓[/green] Built {image}")
        console.print(f"  [green]✓[/green] commit.txt: {info.hash} {info.date}")

    console.print("\n[green]✓[/green] Verification passed")
