"""
Vite project analysis.

Inspects package.json, lockfiles, Node version files and vite.config.*
to work out how a frontend is built, so templates can be rendered
without the user filling in every setting by hand.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from .config import PackageManager, ViteshipConfig
from .errors import ErrorContext, ProjectAnalysisError

logger = logging.getLogger(__name__)

DEFAULT_NODE_VERSION = "20"
DEFAULT_OUTPUT_DIR = "dist"

# Checked in order; the first lockfile found wins
LOCKFILES: list[tuple[str, PackageManager]] = [
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("bun.lockb", PackageManager.BUN),
    ("bun.lock", PackageManager.BUN),
    ("package-lock.json", PackageManager.NPM),
]

VITE_CONFIG_NAMES = [
    "vite.config.ts",
    "vite.config.js",
    "vite.config.mts",
    "vite.config.mjs",
    "vite.config.cts",
    "vite.config.cjs",
]

ENV_FILE_NAMES = [".env", ".env.local", ".env.production", ".env.production.local"]

_OUT_DIR_RE = re.compile(r"""outDir\s*:\s*['"`]([^'"`]+)['"`]""")
_MAJOR_RE = re.compile(r"(\d+)")


@dataclass
class ProjectProfile:
    """What analysis learned about a frontend project."""

    root: Path
    name: str
    package_manager: PackageManager
    lockfile: str | None
    node_version: str
    build_command: str
    output_dir: str
    is_vite: bool = False
    vite_version: str | None = None
    vite_config: str | None = None
    has_git: bool = False
    env_files: list[str] = field(default_factory=list)
    vite_env_vars: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def install_command(self) -> str:
        """Dependency install command for the detected package manager."""
        if self.package_manager == PackageManager.NPM and self.lockfile is None:
            return "npm install"
        return self.package_manager.install_command

    def summary(self) -> dict[str, Any]:
        """Plain-data summary for display."""
        return {
            "name": self.name,
            "package_manager": self.package_manager.value,
            "lockfile": self.lockfile or "(none)",
            "node_version": self.node_version,
            "build_command": self.build_command,
            "output_dir": self.output_dir,
            "vite": self.vite_version or ("yes" if self.is_vite else "not detected"),
            "vite_config": self.vite_config or "(none)",
            "git": "yes" if self.has_git else "no",
            "env_files": ", ".join(self.env_files) or "(none)",
        }


def slugify_image_name(value: str) -> str:
    """Turn a package name into a valid Docker image name."""
    if value.startswith("@") and "/" in value:
        value = value.split("/", 1)[1]
    slug = re.sub(r"[^a-z0-9._-]+", "-", value.lower())
    slug = re.sub(r"[._-]{2,}", "-", slug).strip("._-")
    return slug or "app"


def read_package_json(root: Path) -> dict[str, Any]:
    """
    Load package.json from a project root.

    Raises:
        ProjectAnalysisError: If the file is missing or not a JSON object
    """
    path = root / "package.json"
    if not path.exists():
        raise ProjectAnalysisError(
            "no package.json found; is this a frontend project?", ErrorContext(root)
        )

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ProjectAnalysisError(f"invalid JSON: {e}", ErrorContext(path)) from e

    if not isinstance(data, dict):
        raise ProjectAnalysisError("expected a JSON object", ErrorContext(path))
    return data


def package_section(package: dict[str, Any], key: str) -> dict[str, Any]:
    """An object-valued package.json field, or {} when absent or not an object."""
    value = package.get(key)
    if not isinstance(value, dict):
        if value is not None:
            logger.debug("Ignoring non-object package.json field '%s'", key)
        return {}
    return value


def detect_package_manager(
    root: Path, package: dict[str, Any]
) -> tuple[PackageManager, str | None]:
    """Detect the package manager and its lockfile."""
    lockfile = next((name for name, _ in LOCKFILES if (root / name).exists()), None)

    declared = package.get("packageManager")
    if isinstance(declared, str):
        tool = declared.split("@", 1)[0]
        try:
            return PackageManager(tool), lockfile
        except ValueError:
            logger.debug("Ignoring unknown packageManager '%s'", declared)

    for name, manager in LOCKFILES:
        if name == lockfile:
            return manager, lockfile

    return PackageManager.NPM, None


def detect_node_version(root: Path, package: dict[str, Any]) -> str:
    """Detect the Node.js major version from .nvmrc, .node-version or engines."""
    for name in [".nvmrc", ".node-version"]:
        path = root / name
        if path.exists():
            match = _MAJOR_RE.search(path.read_text())
            if match:
                return match.group(1)

    node = package_section(package, "engines").get("node")
    if isinstance(node, str):
        match = _MAJOR_RE.search(node)
        if match:
            return match.group(1)

    return DEFAULT_NODE_VERSION


def find_vite_config(root: Path) -> str | None:
    """Return the name of the vite config file, if any."""
    for name in VITE_CONFIG_NAMES:
        if (root / name).exists():
            return name
    return None


def detect_output_dir(root: Path, vite_config: str | None) -> str:
    """Read build.outDir from the vite config, defaulting to dist."""
    if vite_config:
        match = _OUT_DIR_RE.search((root / vite_config).read_text())
        if match:
            return match.group(1).removeprefix("./").rstrip("/") or DEFAULT_OUTPUT_DIR
    return DEFAULT_OUTPUT_DIR


def collect_env(root: Path) -> tuple[list[str], list[str]]:
    """Return env files present and the VITE_* keys they declare."""
    files: list[str] = []
    keys: set[str] = set()
    for name in ENV_FILE_NAMES + [".env.example"]:
        path = root / name
        if not path.exists():
            continue
        files.append(name)
        keys.update(key for key in dotenv_values(path) if key.startswith("VITE_"))
    return files, sorted(keys)


def analyze_project(root: Path, config: ViteshipConfig | None = None) -> ProjectProfile:
    """
    Analyze a Vite project directory.

    Configuration values always win over detected ones.

    Args:
        root: Project root containing package.json
        config: Optional configuration overrides

    Returns:
        ProjectProfile describing how to build and serve the project

    Raises:
        ProjectAnalysisError: If package.json is missing or invalid
    """
    config = config or ViteshipConfig()
    root = root.resolve()
    package = read_package_json(root)
    warnings: list[str] = []

    if config.image.name:
        name = config.image.name
    else:
        name = slugify_image_name(str(config.project_name or package.get("name") or root.name))

    manager, lockfile = detect_package_manager(root, package)
    if config.build.package_manager:
        manager = config.build.package_manager
    if lockfile is None:
        warnings.append("no lockfile found; dependency installs will not be reproducible")

    node_version = config.build.node_version or detect_node_version(root, package)

    dependencies = {
        **package_section(package, "dependencies"),
        **package_section(package, "devDependencies"),
    }
    vite_version = dependencies.get("vite")
    if vite_version is not None:
        vite_version = str(vite_version)
    vite_config = find_vite_config(root)
    is_vite = vite_version is not None or vite_config is not None
    if not is_vite:
        warnings.append("vite not found in dependencies and no vite.config.* present")

    scripts = package_section(package, "scripts")
    if config.build.build_command:
        build_command = config.build.build_command
    elif "build" in scripts:
        build_command = f"{manager.run_prefix} build"
    else:
        build_command = f"{manager.exec_prefix} vite build"
        warnings.append(f"no 'build' script in package.json; using '{build_command}'")

    output_dir = config.build.output_dir or detect_output_dir(root, vite_config)
    env_files, vite_env_vars = collect_env(root)

    profile = ProjectProfile(
        root=root,
        name=name,
        package_manager=manager,
        lockfile=lockfile,
        node_version=node_version,
        build_command=build_command,
        output_dir=output_dir,
        is_vite=is_vite,
        vite_version=vite_version,
        vite_config=vite_config,
        has_git=(root / ".git").exists(),
        env_files=env_files,
        vite_env_vars=vite_env_vars,
        warnings=warnings,
    )
    logger.debug("Analyzed %s: %s", root, profile.summary())
    return profile
