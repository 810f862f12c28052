"""
Deploy commands for the viteship CLI.

Triggers a Dokploy redeploy outside of CI, using the same three
variables the generated workflow reads from repository secrets.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from viteship.core.errors import ConfigError, DeployTriggerError
from viteship.deploy.dokploy import DokployClient
from viteship.scaffold.envcheck import load_environment

from .project import ProjectOption
from .utils import console, fail

deploy_app = typer.Typer(
    help="Trigger deployments on Dokploy.",
    no_args_is_help=True,
)


@deploy_app.command("trigger")
def deploy_trigger(
    project_dir: ProjectOption = Path("."),
    compose_id: Annotated[
        str | None,
        typer.Option("--compose-id", help="Override DOKPLOY_COMPOSE_ID"),
    ] = None,
    api_url: Annotated[
        str | None,
        typer.Option("--url", help="Override DOKPLOY_API_URL"),
    ] = None,
) -> None:
    """
    Redeploy the compose service on Dokploy.

    Reads DOKPLOY_API_URL, DOKPLOY_API_KEY and DOKPLOY_COMPOSE_ID from the
    environment or the project's .env.

    Examples:
        viteship deploy trigger
        viteship deploy trigger --compose-id abc123
    """
    env, _ = load_environment(project_dir.resolve())
    if compose_id:
        env["DOKPLOY_COMPOSE_ID"] = compose_id
    if api_url:
        env["DOKPLOY_API_URL"] = api_url

    try:
        client, target = DokployClient.from_env(env)
    except ConfigError as e:
        fail(str(e))

    with client:
        try:
            deployment = client.trigger_compose_deploy(target)
        except DeployTriggerError as e:
            fail(str(e))

    console.print(
        f"[green]✓[/green] Deployment triggered for compose {deployment.compose_id} "
        f"(HTTP {deployment.status_code})"
    )
