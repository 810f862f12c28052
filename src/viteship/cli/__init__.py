"""
viteship CLI package.

- project.py: init, analyze, guide, templates, commit-info
- scaffold.py: generate, env, verify
- deploy.py: deploy trigger
- utils.py: shared helpers
"""

from __future__ import annotations

import sys

import typer

from viteship.cli.deploy import deploy_app
from viteship.cli.project import (
    analyze_command,
    commit_info_command,
    guide_command,
    init_command,
    templates_command,
)
from viteship.cli.scaffold import env_command, generate_command, verify_command
from viteship.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="""viteship - deployment scaffolding for Vite frontends

Workflow:
  1. analyze   Detect how the project builds
  2. generate  Write Dockerfile, nginx.conf, compose, CI workflow
  3. env       Check registry, image, port and Dokploy settings
  4. verify    Check generated files, optionally build the image
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
) -> None:
    """viteship CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="init")(init_command)
app.command(name="analyze")(analyze_command)
app.command(name="generate")(generate_command)
app.command(name="env")(env_command)
app.command(name="verify")(verify_command)
app.command(name="guide")(guide_command)
app.command(name="templates")(templates_command)
app.command(name="commit-info")(commit_info_command)

app.add_typer(deploy_app, name="deploy")


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


if __name__ == "__main__":
    main(sys.argv[1:])

__all__ = ["app", "main"]
