"""
Verification of generated deployment files.

Static checks run against the files on disk; the optional image build
shells out to docker and reads commit.txt back out of the built image.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from viteship.core.commit_info import COMMIT_FILENAME, CommitInfo
from viteship.core.config import DockerfileVariant

if TYPE_CHECKING:
    from viteship.core.config import ViteshipConfig
    from viteship.core.project import ProjectProfile

logger = logging.getLogger(__name__)

# Unrendered Jinja syntax; GitHub's ${{ }} is allowed
TEMPLATE_MARKERS = [r"(?<!\$)\{\{", r"\{%", r"\{#"]

IMAGE_COMMIT_PATH = f"/usr/share/nginx/html/{COMMIT_FILENAME}"
DOCKER_BUILD_TIMEOUT_SECONDS = 1800


class VerificationResult:
    """
    Result of verification.

    Tracks passed checks, errors and warnings.
    """

    def __init__(self):
        self.passed: list[str] = []
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def add_pass(self, message: str) -> None:
        """Record a passed check."""
        self.passed.append(message)

    def add_error(self, message: str) -> None:
        """Add a verification error."""
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add a verification warning."""
        self.warnings.append(message)

    def merge(self, other: VerificationResult) -> None:
        """Merge another result into this one."""
        self.passed.extend(other.passed)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    @property
    def verified(self) -> bool:
        """Check if verification passed (no errors)."""
        return len(self.errors) == 0


def required_files(config: ViteshipConfig) -> list[Path]:
    """Files every scaffold must have."""
    files = [
        Path("Dockerfile"),
        Path("nginx.conf"),
        Path(".dockerignore"),
        Path("docker-compose.yml"),
    ]
    if config.ci.enabled:
        files.append(Path(".github") / "workflows" / config.ci.workflow_file)
    return files


def find_template_markers(content: str) -> list[tuple[int, str]]:
    """Line numbers and text of unrendered template markers."""
    found: list[tuple[int, str]] = []
    for pattern in TEMPLATE_MARKERS:
        for match in re.finditer(pattern, content):
            line_num = content[: match.start()].count("\n") + 1
            found.append((line_num, match.group()))
    return sorted(found)


def _load_yaml(path: Path, result: VerificationResult) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        result.add_error(f"{path.name}: invalid YAML: {e}")
        return None


def check_dockerfile(content: str, config: ViteshipConfig, result: VerificationResult) -> None:
    """Build args, exposed port, health check and commit.txt."""
    for arg in ["VITE_GIT_COMMIT_HASH", "VITE_GIT_COMMIT_DATE"]:
        if re.search(rf"^ARG {arg}\b", content, re.MULTILINE):
            result.add_pass(f"Dockerfile declares ARG {arg}")
        else:
            result.add_error(f"Dockerfile: missing ARG {arg}")

    if re.search(r"^EXPOSE 80\b", content, re.MULTILINE):
        result.add_pass("Dockerfile exposes port 80")
    else:
        result.add_error("Dockerfile: missing EXPOSE 80")

    if not re.search(r"^HEALTHCHECK\b", content, re.MULTILINE):
        result.add_error("Dockerfile: missing HEALTHCHECK")
    elif config.server.health_path not in content:
        result.add_error(f"Dockerfile: HEALTHCHECK does not probe {config.server.health_path}")
    else:
        result.add_pass(f"Dockerfile health check probes {config.server.health_path}")

    if COMMIT_FILENAME in content:
        result.add_pass(f"Dockerfile writes {COMMIT_FILENAME}")
    else:
        result.add_error(f"Dockerfile: does not produce {COMMIT_FILENAME}")


def check_nginx(content: str, config: ViteshipConfig, result: VerificationResult) -> None:
    """Health endpoint location block."""
    if re.search(rf"location\s+=?\s*{re.escape(config.server.health_path)}\s*\{{", content):
        result.add_pass(f"nginx.conf serves {config.server.health_path}")
    else:
        result.add_error(f"nginx.conf: no location for {config.server.health_path}")


def check_dockerignore(
    content: str,
    config: ViteshipConfig,
    profile: ProjectProfile,
    result: VerificationResult,
) -> None:
    """Build context keeps what the Dockerfile needs."""
    entries = {line.strip().rstrip("/") for line in content.splitlines()}
    entries.discard("")

    if config.build.variant == DockerfileVariant.PREBUILT and profile.output_dir in entries:
        result.add_error(
            f".dockerignore: excludes {profile.output_dir}, which the prebuilt Dockerfile copies"
        )
    if config.build.variant == DockerfileVariant.MULTISTAGE and ".git" in entries:
        result.add_warning(
            ".dockerignore: excludes .git; commit metadata falls back to build args or 'unknown'"
        )
    if "node_modules" not in entries:
        result.add_warning(".dockerignore: node_modules is not excluded")


def check_compose(path: Path, result: VerificationResult) -> None:
    """Compose file parses and maps a host port to container port 80."""
    data = _load_yaml(path, result)
    if data is None:
        return

    services = data.get("services") if isinstance(data, dict) else None
    if not isinstance(services, dict) or not services:
        result.add_error("docker-compose.yml: no services defined")
        return

    for name, service in services.items():
        if not isinstance(service, dict):
            result.add_error(f"docker-compose.yml: {name} is not a mapping")
            continue
        ports = [str(p) for p in service.get("ports") or []]
        if any(p.endswith(":80") for p in ports):
            result.add_pass(f"docker-compose.yml: {name} maps a host port to 80")
        else:
            result.add_error(f"docker-compose.yml: {name} does not publish container port 80")

    text = path.read_text()
    for variable in ["DOCKER_REGISTRY", "DOCKER_IMAGE_NAME", "IMAGE_TAG", "APP_PORT"]:
        if f"${{{variable}" not in text:
            result.add_warning(f"docker-compose.yml: does not read {variable}")


def check_workflow(path: Path, config: ViteshipConfig, result: VerificationResult) -> None:
    """Workflow parses, has triggers and jobs, and posts to Dokploy when enabled."""
    data = _load_yaml(path, result)
    if data is None:
        return
    if not isinstance(data, dict):
        result.add_error(f"{path.name}: not a mapping")
        return

    # YAML 1.1 reads the bare key `on` as boolean True
    if "on" not in data and True not in data:
        result.add_error(f"{path.name}: no 'on' triggers")
    jobs = data.get("jobs")
    if not isinstance(jobs, dict) or "build" not in jobs:
        result.add_error(f"{path.name}: no build job")
    else:
        result.add_pass(f"{path.name}: build job present")

    if config.ci.dokploy:
        if "deploy" in (jobs or {}) and "/api/compose.deploy" in path.read_text():
            result.add_pass(f"{path.name}: triggers Dokploy deployment")
        else:
            result.add_error(f"{path.name}: Dokploy deploy job missing")


def verify_scaffold(
    project_root: Path,
    config: ViteshipConfig,
    profile: ProjectProfile,
) -> VerificationResult:
    """
    Run static checks over the generated files.

    Args:
        project_root: Project root containing generated files
        config: Effective configuration
        profile: Analyzed project

    Returns:
        VerificationResult with passed checks, errors and warnings
    """
    result = VerificationResult()

    missing = [p for p in required_files(config) if not (project_root / p).exists()]
    for rel in missing:
        result.add_error(f"{rel}: not found (run 'viteship generate')")
    if missing:
        return result

    if not (project_root / ".env.example").exists():
        result.add_warning(".env.example: not found")

    candidates = required_files(config) + [Path(".env.example")]
    for rel in candidates:
        path = project_root / rel
        if not path.exists():
            continue
        for line_num, marker in find_template_markers(path.read_text()):
            result.add_error(f"{rel}:{line_num}: unrendered template marker {marker!r}")

    check_dockerfile((project_root / "Dockerfile").read_text(), config, result)
    check_nginx((project_root / "nginx.conf").read_text(), config, result)
    check_dockerignore((project_root / ".dockerignore").read_text(), config, profile, result)
    check_compose(project_root / "docker-compose.yml", result)
    if config.ci.enabled:
        workflow = project_root / ".github" / "workflows" / config.ci.workflow_file
        check_workflow(workflow, config, result)

    if config.build.variant == DockerfileVariant.PREBUILT and not (
        project_root / profile.output_dir
    ).is_dir():
        result.add_warning(f"{profile.output_dir}/ does not exist yet; build before docker build")

    return result


# =============================================================================
# Image build
# =============================================================================


@dataclass
class BuildOutcome:
    """What happened when building the image."""

    image: str
    command: list[str]
    returncode: int | None = None
    output: str = ""
    commit_file: CommitInfo | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the build and checks succeeded."""
        return self.returncode == 0 and not self.errors


def image_reference(config: ViteshipConfig, profile: ProjectProfile, tag: str | None = None) -> str:
    """Full image reference ``registry/name:tag``."""
    return f"{config.image.registry}/{profile.name}:{tag or config.image.tag}"


def docker_build_command(image: str, info: CommitInfo, context_dir: Path) -> list[str]:
    """docker build invocation passing commit metadata as build args."""
    return [
        "docker",
        "build",
        "--build-arg",
        f"VITE_GIT_COMMIT_HASH={info.hash}",
        "--build-arg",
        f"VITE_GIT_COMMIT_DATE={info.date}",
        "-t",
        image,
        str(context_dir),
    ]


def read_image_commit_file(image: str) -> CommitInfo:
    """
    Read commit.txt out of a built image.

    Raises:
        RuntimeError: If the container cannot be run
        ValueError: If commit.txt is malformed
    """
    completed = subprocess.run(
        ["docker", "run", "--rm", "--entrypoint", "cat", image, IMAGE_COMMIT_PATH],
        capture_output=True,
        text=True,
        check=False,
    )
    if completed.returncode != 0:
        raise RuntimeError(completed.stderr.strip() or f"docker run exited {completed.returncode}")
    return CommitInfo.parse(completed.stdout)


def build_image(project_root: Path, image: str, info: CommitInfo) -> BuildOutcome:
    """
    Build the image with docker and check the baked-in commit.txt.

    A missing docker binary or a failed build is reported in the outcome,
    not raised.
    """
    command = docker_build_command(image, info, project_root)
    outcome = BuildOutcome(image=image, command=command)

    if shutil.which("docker") is None:
        outcome.errors.append("docker not found on PATH")
        return outcome

    logger.info("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=DOCKER_BUILD_TIMEOUT_SECONDS,
            check=False,
        )
    except subprocess.TimeoutExpired:
        outcome.errors.append(f"docker build timed out after {DOCKER_BUILD_TIMEOUT_SECONDS}s")
        return outcome

    outcome.returncode = completed.returncode
    outcome.output = completed.stdout + completed.stderr
    if completed.returncode != 0:
        outcome.errors.append(f"docker build exited {completed.returncode}")
        return outcome

    try:
        outcome.commit_file = read_image_commit_file(image)
    except (RuntimeError, ValueError) as e:
        outcome.errors.append(f"could not read {COMMIT_FILENAME} from image: {e}")
        return outcome

    if outcome.commit_file != info:
        outcome.errors.append(
            f"{COMMIT_FILENAME} in image is {outcome.commit_file.render()!r}, "
            f"expected {info.render()!r}"
        )
    return outcome
