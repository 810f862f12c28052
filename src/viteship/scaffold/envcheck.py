"""
Environment check for compose and CI placeholders.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import dotenv_values

from .placeholders import Lifecycle, ResolvedPlaceholder, Source, resolve_placeholders

if TYPE_CHECKING:
    from viteship.core.config import ViteshipConfig
    from viteship.core.project import ProjectProfile


@dataclass
class EnvironmentReport:
    """Placeholder resolution for one project."""

    resolved: list[ResolvedPlaceholder] = field(default_factory=list)
    env_file: Path | None = None

    @property
    def missing(self) -> list[ResolvedPlaceholder]:
        """Placeholders with neither a value nor a fallback."""
        return [r for r in self.resolved if r.source == Source.MISSING]

    @property
    def missing_secrets(self) -> list[str]:
        """Names of missing CI secrets."""
        return [
            r.placeholder.name
            for r in self.missing
            if r.placeholder.lifecycle == Lifecycle.CI_SECRET
        ]

    @property
    def complete(self) -> bool:
        """Whether every placeholder has a value or a fallback."""
        return not self.missing


def load_environment(
    project_root: Path,
    environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, str | None], Path | None]:
    """
    Merge the project's .env file under the process environment.

    Process variables win, matching how docker compose reads both.
    """
    env: dict[str, str | None] = {}
    env_file = project_root / ".env"
    if env_file.exists():
        env.update(dotenv_values(env_file))
    else:
        env_file = None

    env.update(os.environ if environ is None else environ)
    return env, env_file


def check_environment(
    project_root: Path,
    config: ViteshipConfig,
    profile: ProjectProfile,
    environ: Mapping[str, str] | None = None,
    include_ci_secrets: bool = True,
) -> EnvironmentReport:
    """
    Resolve every placeholder for a project.

    Args:
        project_root: Directory holding the optional .env
        config: Effective configuration
        profile: Analyzed project
        environ: Environment to use instead of os.environ
        include_ci_secrets: Whether to report the Dokploy secrets
    """
    env, env_file = load_environment(project_root, environ)
    resolved = resolve_placeholders(env, config, profile)
    if not include_ci_secrets:
        resolved = [r for r in resolved if r.placeholder.lifecycle != Lifecycle.CI_SECRET]
    return EnvironmentReport(resolved=resolved, env_file=env_file)
