"""
Template store.

A fixed set of named deployment templates shipped as Jinja2 files next
to this module. Each template has a key, the file it renders to, and the
group of generators that owns it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from viteship._version import get_version
from viteship.core.config import PackageManager
from viteship.core.errors import ErrorContext, TemplateNotFoundError, TemplateRenderError

if TYPE_CHECKING:
    from viteship.core.config import ViteshipConfig
    from viteship.core.project import ProjectProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSpec:
    """A named template in the store."""

    key: str
    source: str
    target: str
    group: str
    description: str


_TEMPLATES: list[TemplateSpec] = [
    TemplateSpec(
        key="dockerfile",
        source="Dockerfile.j2",
        target="Dockerfile",
        group="docker",
        description="Multi-stage build: Node builds the app, Nginx serves it",
    ),
    TemplateSpec(
        key="dockerfile-prebuilt",
        source="Dockerfile.prebuilt.j2",
        target="Dockerfile",
        group="docker",
        description="Nginx image serving an output dir built outside Docker",
    ),
    TemplateSpec(
        key="nginx",
        source="nginx.conf.j2",
        target="nginx.conf",
        group="docker",
        description="SPA routing, asset caching and the health endpoint",
    ),
    TemplateSpec(
        key="dockerignore",
        source="dockerignore.j2",
        target=".dockerignore",
        group="docker",
        description="Build context exclusions",
    ),
    TemplateSpec(
        key="compose",
        source="docker-compose.yml.j2",
        target="docker-compose.yml",
        group="compose",
        description="Service reading DOCKER_REGISTRY, DOCKER_IMAGE_NAME, IMAGE_TAG, APP_PORT",
    ),
    TemplateSpec(
        key="workflow",
        source="workflow.yml.j2",
        target=".github/workflows/<ci.workflow_file>",
        group="ci",
        description="GitHub Actions: build, push, trigger Dokploy",
    ),
    TemplateSpec(
        key="env-example",
        source="env.example.j2",
        target=".env.example",
        group="env",
        description="Documented placeholder values",
    ),
]

TEMPLATES: dict[str, TemplateSpec] = {spec.key: spec for spec in _TEMPLATES}


def list_templates() -> list[TemplateSpec]:
    """All templates in declaration order."""
    return list(_TEMPLATES)


def get_template(key: str) -> TemplateSpec:
    """
    Look up a template by key.

    Raises:
        TemplateNotFoundError: If no template has that key
    """
    try:
        return TEMPLATES[key]
    except KeyError:
        known = ", ".join(TEMPLATES)
        raise TemplateNotFoundError(f"unknown template '{key}' (known: {known})") from None


def github_expression(expression: str) -> str:
    """Wrap an expression in GitHub Actions ``${{ }}`` syntax."""
    return "${{ " + expression + " }}"


class TemplateStore:
    """Renders templates from the store with strict variable checking."""

    def __init__(self) -> None:
        self.loader = PackageLoader("viteship", "scaffold/templates")
        self.env = Environment(
            loader=self.loader,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.globals["gha"] = github_expression

    def source(self, key: str) -> str:
        """Raw template text, before substitution."""
        spec = get_template(key)
        text, _, _ = self.loader.get_source(self.env, spec.source)
        return text

    def render(self, key: str, context: dict[str, Any]) -> str:
        """
        Render a template.

        Raises:
            TemplateNotFoundError: If the key is unknown
            TemplateRenderError: If a variable is missing or the template is invalid
        """
        spec = get_template(key)
        try:
            template = self.env.get_template(spec.source)
            rendered = template.render(**context)
        except TemplateError as e:
            raise TemplateRenderError(str(e), ErrorContext(Path(spec.source), key)) from e

        logger.debug("Rendered %s (%d bytes)", key, len(rendered))
        return rendered


def build_image_for(profile: ProjectProfile) -> str:
    """Base image for the build stage."""
    if profile.package_manager == PackageManager.BUN:
        return "oven/bun:1-alpine"
    return f"node:{profile.node_version}-alpine"


def build_context(profile: ProjectProfile, config: ViteshipConfig) -> dict[str, Any]:
    """Substitution values shared by every template."""
    from viteship.scaffold.placeholders import PLACEHOLDERS_BY_NAME, env_example_entries

    return {
        "generator_version": get_version(),
        "project_name": profile.name,
        "service_name": profile.name.rsplit("/", 1)[-1],
        "variant": config.build.variant.value,
        # build
        "build_image": build_image_for(profile),
        "node_version": profile.node_version,
        "package_manager": profile.package_manager.value,
        "lockfile": profile.lockfile,
        "install_command": profile.install_command,
        "build_command": profile.build_command,
        "output_dir": profile.output_dir,
        "include_git_metadata": config.build.include_git_metadata,
        # serve
        "nginx_version": config.server.nginx_version,
        "health_path": config.server.health_path,
        "app_port": config.server.port,
        # image
        "registry": config.image.registry,
        "registry_host": config.image.registry_host,
        "registry_needs_owner": config.image.needs_owner(profile.name),
        "image_name": profile.name,
        "image_tag": config.image.tag,
        # ci
        "ci_branches": config.ci.branches,
        "uses_ghcr": config.image.uses_ghcr,
        "dokploy": config.ci.dokploy,
        # env
        "placeholders": env_example_entries(config, profile, include_ci_secrets=config.ci.dokploy),
        "vite_env_vars": [v for v in profile.vite_env_vars if v not in PLACEHOLDERS_BY_NAME],
    }
