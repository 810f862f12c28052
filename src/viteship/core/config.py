"""
Configuration models for viteship.

Configuration is loaded from viteship.toml in the project root. Every
section is optional; values left unset are filled in from project
analysis (package manager, Node version, build command, output dir).
"""

from __future__ import annotations

import json
import re
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError, ErrorContext

CONFIG_FILENAME = "viteship.toml"

_IMAGE_NAME_RE = re.compile(r"^[a-z0-9]+(?:[._-][a-z0-9]+)*(?:/[a-z0-9]+(?:[._-][a-z0-9]+)*)*$")
_TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


class PackageManager(str, Enum):
    """Supported JavaScript package managers."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"

    @property
    def install_command(self) -> str:
        """Install command that respects the lockfile."""
        return {
            PackageManager.NPM: "npm ci",
            PackageManager.PNPM: "pnpm install --frozen-lockfile",
            PackageManager.YARN: "yarn install --frozen-lockfile",
            PackageManager.BUN: "bun install --frozen-lockfile",
        }[self]

    @property
    def run_prefix(self) -> str:
        """Prefix for running a package.json script."""
        return {
            PackageManager.NPM: "npm run",
            PackageManager.PNPM: "pnpm run",
            PackageManager.YARN: "yarn",
            PackageManager.BUN: "bun run",
        }[self]

    @property
    def exec_prefix(self) -> str:
        """Prefix for running a locally installed binary."""
        return {
            PackageManager.NPM: "npx",
            PackageManager.PNPM: "pnpm exec",
            PackageManager.YARN: "yarn",
            PackageManager.BUN: "bunx",
        }[self]


class DockerfileVariant(str, Enum):
    """Dockerfile templates."""

    MULTISTAGE = "multistage"  # build inside Docker, serve with Nginx
    PREBUILT = "prebuilt"  # copy an already built output dir into Nginx


class CIProvider(str, Enum):
    """Supported CI templates."""

    GITHUB_ACTIONS = "github-actions"
    NONE = "none"


# =============================================================================
# Section Models
# =============================================================================


class ImageConfig(BaseModel):
    """Container image coordinates."""

    registry: str = "ghcr.io"
    name: str | None = None
    tag: str = "latest"

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str | None) -> str | None:
        if value is not None and not _IMAGE_NAME_RE.match(value):
            raise ValueError(f"invalid image name '{value}' (lowercase, digits, . _ - /)")
        return value

    @field_validator("tag")
    @classmethod
    def _check_tag(cls, value: str) -> str:
        if not _TAG_RE.match(value):
            raise ValueError(f"invalid image tag '{value}'")
        return value

    @property
    def uses_ghcr(self) -> bool:
        """Whether the registry is GitHub Container Registry."""
        return self.registry.split("/")[0] == "ghcr.io"

    @property
    def registry_host(self) -> str:
        """Registry host without any namespace, as docker login expects."""
        return self.registry.split("/")[0]

    def needs_owner(self, image_name: str) -> bool:
        """GHCR images live under an owner; a bare ghcr.io with a bare name has none."""
        return self.registry == "ghcr.io" and "/" not in image_name


class ServerConfig(BaseModel):
    """Nginx and host port settings."""

    port: int = Field(default=3000, ge=1, le=65535)
    health_path: str = "/health"
    nginx_version: str = "1.27"

    @field_validator("health_path")
    @classmethod
    def _check_health_path(cls, value: str) -> str:
        if not value.startswith("/") or " " in value:
            raise ValueError("health_path must be an absolute URL path such as /health")
        return value


class BuildConfig(BaseModel):
    """Frontend build settings. Unset values come from project analysis."""

    variant: DockerfileVariant = DockerfileVariant.MULTISTAGE
    package_manager: PackageManager | None = None
    node_version: str | None = None
    build_command: str | None = None
    output_dir: str | None = None
    include_git_metadata: bool = True


class CIConfig(BaseModel):
    """CI workflow settings."""

    provider: CIProvider = CIProvider.GITHUB_ACTIONS
    branches: list[str] = Field(default_factory=lambda: ["main"])
    workflow_file: str = "deploy.yml"
    dokploy: bool = True

    @property
    def enabled(self) -> bool:
        """Whether a CI workflow is generated at all."""
        return self.provider != CIProvider.NONE

    @field_validator("branches")
    @classmethod
    def _check_branches(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one branch is required")
        return value


class OutputConfig(BaseModel):
    """File writing policy."""

    overwrite: bool = False


# =============================================================================
# Main Configuration Model
# =============================================================================


class ViteshipConfig(BaseModel):
    """Complete viteship configuration."""

    project_name: str | None = None
    image: ImageConfig = Field(default_factory=ImageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# =============================================================================
# Configuration Loading
# =============================================================================


def load_config(toml_path: Path) -> ViteshipConfig:
    """
    Load configuration from viteship.toml.

    Args:
        toml_path: Path to viteship.toml

    Returns:
        ViteshipConfig with values from the file, or defaults if it is absent

    Raises:
        ConfigError: If the file is not valid TOML or fails validation
    """
    if not toml_path.exists():
        return ViteshipConfig()

    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML: {e}", ErrorContext(toml_path)) from e

    return parse_config(data, toml_path)


def parse_config(data: dict[str, Any], source: Path | None = None) -> ViteshipConfig:
    """Validate a parsed TOML document into ViteshipConfig."""
    config_data: dict[str, Any] = {}

    project = data.get("project", {})
    if "name" in project:
        config_data["project_name"] = project["name"]

    for section in ["image", "server", "build", "ci", "output"]:
        if section in data:
            config_data[section] = data[section]

    try:
        return ViteshipConfig.model_validate(config_data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        context = ErrorContext(source or Path(CONFIG_FILENAME), key)
        raise ConfigError(first["msg"], context) from e


def _q(value: str) -> str:
    """Quote a string as a TOML basic string."""
    return json.dumps(value)


def render_config_toml(config: ViteshipConfig) -> str:
    """Serialize a configuration back to viteship.toml text."""
    lines: list[str] = []

    if config.project_name:
        lines += ["[project]", f"name = {_q(config.project_name)}", ""]

    lines += [
        "[image]",
        f"registry = {_q(config.image.registry)}",
    ]
    if config.image.name:
        lines.append(f"name = {_q(config.image.name)}")
    lines += [f"tag = {_q(config.image.tag)}", ""]

    lines += [
        "[server]",
        f"port = {config.server.port}",
        f"health_path = {_q(config.server.health_path)}",
        f"nginx_version = {_q(config.server.nginx_version)}",
        "",
        "[build]",
        f'variant = "{config.build.variant.value}"',
    ]
    if config.build.package_manager:
        lines.append(f'package_manager = "{config.build.package_manager.value}"')
    for key in ["node_version", "build_command", "output_dir"]:
        value = getattr(config.build, key)
        if value:
            lines.append(f"{key} = {_q(value)}")
    lines += [
        f"include_git_metadata = {str(config.build.include_git_metadata).lower()}",
        "",
        "[ci]",
        f'provider = "{config.ci.provider.value}"',
        "branches = [" + ", ".join(_q(b) for b in config.ci.branches) + "]",
        f"workflow_file = {_q(config.ci.workflow_file)}",
        f"dokploy = {str(config.ci.dokploy).lower()}",
        "",
        "[output]",
        f"overwrite = {str(config.output.overwrite).lower()}",
    ]

    return "\n".join(lines) + "\n"
