"""
viteship - deployment scaffolding for Vite frontends.

Renders the Dockerfile, Nginx, Docker Compose, GitHub Actions and
.dockerignore templates for a Vite project, resolves build-time commit
metadata, and walks the analyze / generate / configure / verify workflow.
"""

from __future__ import annotations

from ._version import get_version
from .core.errors import (
    ConfigError,
    DeployTriggerError,
    ProjectAnalysisError,
    TemplateNotFoundError,
    TemplateRenderError,
    ViteshipError,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ViteshipError",
    "ConfigError",
    "ProjectAnalysisError",
    "TemplateNotFoundError",
    "TemplateRenderError",
    "DeployTriggerError",
]
