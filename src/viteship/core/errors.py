"""
Error types for viteship configuration, analysis, rendering and deployment.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class ErrorContext:
    """
    Where an error came from.

    Attributes:
        file: File being processed when the error occurred
        key: Optional dotted key or template name inside that file
    """

    file: Path
    key: str | None = None

    def format(self) -> str:
        """Format as ``path`` or ``path [key]``."""
        if self.key:
            return f"{self.file} [{self.key}]"
        return str(self.file)


class ViteshipError(Exception):
    """Base exception for all viteship errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ConfigError(ViteshipError):
    """
    Raised when configuration cannot be loaded.

    Examples:
    - viteship.toml is not valid TOML
    - A value fails validation (bad port, image name, health path)
    - A required deploy secret is missing from the environment
    """

    pass


class ProjectAnalysisError(ViteshipError):
    """
    Raised when the target directory is not an analyzable frontend project.

    Examples:
    - No package.json
    - package.json is not valid JSON
    """

    pass


class TemplateNotFoundError(ViteshipError):
    """Raised when a template key is not in the template store."""

    pass


class TemplateRenderError(ViteshipError):
    """
    Raised when a template fails to render.

    Examples:
    - A substitution variable is missing from the context
    - Template syntax error
    """

    pass


class DeployTriggerError(ViteshipError):
    """Raised when the Dokploy deploy request fails or is rejected."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, context)
