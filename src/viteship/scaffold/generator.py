"""
Base generator classes for scaffold generation.

Generators turn a ProjectProfile and ViteshipConfig into rendered files:
- The docker generator renders the Dockerfile, nginx.conf and .dockerignore
- The compose generator renders docker-compose.yml
- The ci generator renders the GitHub Actions workflow
- The env generator renders .env.example

Generators only render. Writing is left to the ScaffoldRunner so that
hand-edited files can be detected before anything touches disk.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from viteship.core.errors import TemplateNotFoundError, TemplateRenderError

if TYPE_CHECKING:
    from viteship.core.config import ViteshipConfig
    from viteship.core.project import ProjectProfile
    from viteship.scaffold.templates import TemplateStore


@dataclass
class GeneratorResult:
    """
    Result from a generator execution.

    Attributes:
        files: Rendered content keyed by path relative to the project root
        templates: Template key used for each file
        errors: Any non-fatal errors encountered
        warnings: Any warnings to display to user
    """

    files: dict[Path, str] = field(default_factory=dict)
    templates: dict[Path, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether generation succeeded (no errors)."""
        return len(self.errors) == 0

    def add_file(self, path: Path, content: str, template: str) -> None:
        """Record a rendered file."""
        self.files[path] = content
        self.templates[path] = template

    def add_error(self, error: str) -> None:
        """Record an error."""
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        """Record a warning."""
        self.warnings.append(warning)

    def merge(self, other: GeneratorResult) -> None:
        """Merge another result into this one."""
        self.files.update(other.files)
        self.templates.update(other.templates)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class Generator(ABC):
    """
    Base class for all generators.

    Example:
        class ComposeGenerator(Generator):
            name = "compose"

            def generate(self) -> GeneratorResult:
                result = GeneratorResult()
                self._render(result, "compose", Path("docker-compose.yml"))
                return result
    """

    name: str = ""
    description: str = ""

    def __init__(
        self,
        profile: ProjectProfile,
        config: ViteshipConfig,
        store: TemplateStore,
        context: dict[str, Any],
    ):
        """
        Initialize generator.

        Args:
            profile: Analyzed project
            config: Effective configuration
            store: Template store to render from
            context: Shared template context
        """
        self.profile = profile
        self.config = config
        self.store = store
        self.context = context

    @abstractmethod
    def generate(self) -> GeneratorResult:
        """
        Render this generator's files.

        Returns:
            GeneratorResult with rendered files
        """
        pass

    def _render(self, result: GeneratorResult, key: str, target: Path) -> None:
        """Render one template into the result, recording failures as errors."""
        try:
            content = self.store.render(key, self.context)
        except (TemplateNotFoundError, TemplateRenderError) as e:
            result.add_error(f"{target}: {e}")
            return
        result.add_file(target, content, key)
