"""
Variable substitution points.

The values the templates leave open: commit metadata filled in at build
time, image coordinates and host port filled in at deploy time, and the
Dokploy secrets the CI workflow reads.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from viteship.core.commit_info import UNKNOWN

if TYPE_CHECKING:
    from viteship.core.config import ViteshipConfig
    from viteship.core.project import ProjectProfile


class Lifecycle(str, Enum):
    """When a placeholder gets its value."""

    BUILD = "build time"
    DEPLOY = "deploy time"
    CI_SECRET = "CI secret"


class Source(str, Enum):
    """Where a resolved value came from."""

    ENVIRONMENT = "environment"
    DEFAULT = "default"
    FALLBACK = "fallback"
    MISSING = "missing"


@dataclass(frozen=True)
class Placeholder:
    """A named substitution point."""

    name: str
    meaning: str
    lifecycle: Lifecycle
    fallback_note: str | None = None
    secret: bool = False

    @property
    def required(self) -> bool:
        """Placeholders without a documented fallback must be supplied."""
        return self.fallback_note is None


PLACEHOLDERS: list[Placeholder] = [
    Placeholder(
        "VITE_GIT_COMMIT_HASH",
        "short commit hash",
        Lifecycle.BUILD,
        fallback_note=f"git rev-parse --short HEAD, then '{UNKNOWN}'",
    ),
    Placeholder(
        "VITE_GIT_COMMIT_DATE",
        "commit timestamp",
        Lifecycle.BUILD,
        fallback_note=f"git log -1 --format=%cI, then '{UNKNOWN}'",
    ),
    Placeholder(
        "DOCKER_REGISTRY",
        "image registry",
        Lifecycle.DEPLOY,
        fallback_note="image.registry from viteship.toml",
    ),
    Placeholder(
        "DOCKER_IMAGE_NAME",
        "image name",
        Lifecycle.DEPLOY,
        fallback_note="image.name from viteship.toml or the package name",
    ),
    Placeholder(
        "IMAGE_TAG",
        "image tag",
        Lifecycle.DEPLOY,
        fallback_note="image.tag from viteship.toml",
    ),
    Placeholder(
        "APP_PORT",
        "host port mapped to container port 80",
        Lifecycle.DEPLOY,
        fallback_note="server.port from viteship.toml",
    ),
    Placeholder("DOKPLOY_API_URL", "Dokploy base URL", Lifecycle.CI_SECRET),
    Placeholder("DOKPLOY_API_KEY", "Dokploy API key", Lifecycle.CI_SECRET, secret=True),
    Placeholder("DOKPLOY_COMPOSE_ID", "Dokploy compose id", Lifecycle.CI_SECRET),
]

PLACEHOLDERS_BY_NAME: dict[str, Placeholder] = {p.name: p for p in PLACEHOLDERS}

DOKPLOY_SECRETS = ["DOKPLOY_API_URL", "DOKPLOY_API_KEY", "DOKPLOY_COMPOSE_ID"]


@dataclass(frozen=True)
class ResolvedPlaceholder:
    """A placeholder together with the value it would take."""

    placeholder: Placeholder
    value: str | None
    source: Source

    @property
    def display_value(self) -> str:
        """Value safe for printing."""
        if self.value is None:
            return "-"
        if self.placeholder.secret and self.source == Source.ENVIRONMENT:
            return "********"
        return self.value


def default_values(config: ViteshipConfig, profile: ProjectProfile) -> dict[str, str]:
    """Documented defaults for deploy-time placeholders."""
    return {
        "DOCKER_REGISTRY": config.image.registry,
        "DOCKER_IMAGE_NAME": profile.name,
        "IMAGE_TAG": config.image.tag,
        "APP_PORT": str(config.server.port),
    }


def resolve_placeholders(
    env: Mapping[str, str | None],
    config: ViteshipConfig,
    profile: ProjectProfile,
) -> list[ResolvedPlaceholder]:
    """
    Resolve every placeholder against an environment.

    Empty strings count as unset. Commit metadata resolves to its git
    fallback marker rather than a value, since git runs at build time.
    """
    defaults = default_values(config, profile)
    resolved: list[ResolvedPlaceholder] = []

    for placeholder in PLACEHOLDERS:
        value = env.get(placeholder.name)
        if value:
            resolved.append(ResolvedPlaceholder(placeholder, value, Source.ENVIRONMENT))
        elif placeholder.name in defaults:
            resolved.append(
                ResolvedPlaceholder(placeholder, defaults[placeholder.name], Source.DEFAULT)
            )
        elif placeholder.fallback_note is not None:
            resolved.append(ResolvedPlaceholder(placeholder, None, Source.FALLBACK))
        else:
            resolved.append(ResolvedPlaceholder(placeholder, None, Source.MISSING))

    return resolved


def env_example_entries(
    config: ViteshipConfig,
    profile: ProjectProfile,
    include_ci_secrets: bool = True,
) -> list[dict[str, str | None]]:
    """Template context rows for .env.example."""
    defaults = default_values(config, profile)
    entries: list[dict[str, str | None]] = []
    for placeholder in PLACEHOLDERS:
        if placeholder.lifecycle == Lifecycle.CI_SECRET and not include_ci_secrets:
            continue
        entries.append(
            {
                "name": placeholder.name,
                "meaning": placeholder.meaning,
                "lifecycle": placeholder.lifecycle.value,
                "fallback_note": placeholder.fallback_note,
                "example": defaults.get(placeholder.name, ""),
            }
        )
    return entries
