"""
The deployment workflow, step by step.

Four steps, in order. Nothing enforces the order; each step is its own
command and can be rerun at any time.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkflowStep:
    """One step of the deployment workflow."""

    number: int
    key: str
    title: str
    summary: str
    command: str


WORKFLOW: list[WorkflowStep] = [
    WorkflowStep(
        number=1,
        key="analyze",
        title="Analyze project",
        summary=(
            "Detect the package manager, Node version, build command and output "
            "directory from package.json, lockfiles and vite.config."
        ),
        command="viteship analyze",
    ),
    WorkflowStep(
        number=2,
        key="generate",
        title="Generate configs",
        summary=(
            "Render the Dockerfile, nginx.conf, .dockerignore, docker-compose.yml, "
            "the GitHub Actions workflow and .env.example."
        ),
        command="viteship generate",
    ),
    WorkflowStep(
        number=3,
        key="env",
        title="Configure environment",
        summary=(
            "Set DOCKER_REGISTRY, DOCKER_IMAGE_NAME, IMAGE_TAG and APP_PORT for "
            "compose, and add DOKPLOY_API_URL, DOKPLOY_API_KEY and "
            "DOKPLOY_COMPOSE_ID as repository secrets."
        ),
        command="viteship env",
    ),
    WorkflowStep(
        number=4,
        key="verify",
        title="Verify build",
        summary=(
            "Check the generated files, then build the image and confirm "
            "commit.txt and the health endpoint."
        ),
        command="viteship verify --build",
    ),
]


def get_step(key: str) -> WorkflowStep | None:
    """Look up a step by key."""
    for step in WORKFLOW:
        if step.key == key:
            return step
    return None


def next_step(key: str) -> WorkflowStep | None:
    """The step after ``key``, or None after the last one."""
    step = get_step(key)
    if step is None or step.number >= len(WORKFLOW):
        return None
    return WORKFLOW[step.number]
