"""
Concrete scaffold generators and their registry.
"""

from __future__ import annotations

from pathlib import Path

from viteship.core.config import DockerfileVariant

from .generator import Generator, GeneratorResult


class DockerGenerator(Generator):
    """Dockerfile (selected variant), nginx.conf and .dockerignore."""

    name = "docker"
    description = "Dockerfile, nginx.conf, .dockerignore"

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()

        if self.config.build.variant == DockerfileVariant.PREBUILT:
            self._render(result, "dockerfile-prebuilt", Path("Dockerfile"))
            result.add_warning(
                f"prebuilt Dockerfile expects '{self.profile.output_dir}/' to exist "
                "before docker build"
            )
        else:
            self._render(result, "dockerfile", Path("Dockerfile"))
            if not self.config.build.include_git_metadata:
                result.add_warning(
                    ".git is excluded from the build context; commit metadata "
                    "must be passed as build args"
                )

        self._render(result, "nginx", Path("nginx.conf"))
        self._render(result, "dockerignore", Path(".dockerignore"))

        if not self.profile.is_vite:
            result.add_warning("project does not look like a Vite app; check output_dir")

        return result


class ComposeGenerator(Generator):
    """docker-compose.yml."""

    name = "compose"
    description = "docker-compose.yml"

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        self._render(result, "compose", Path("docker-compose.yml"))
        if self.config.image.needs_owner(self.profile.name):
            result.add_warning(
                "registry is bare ghcr.io; set DOCKER_REGISTRY=ghcr.io/<owner> on the deploy host"
            )
        return result


class CIGenerator(Generator):
    """GitHub Actions workflow."""

    name = "ci"
    description = "GitHub Actions workflow"

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        if not self.config.ci.enabled:
            return result

        target = Path(".github") / "workflows" / self.config.ci.workflow_file
        self._render(result, "workflow", target)

        if not self.profile.has_git:
            result.add_warning("no .git directory; the workflow only runs from a GitHub repository")
        return result


class EnvGenerator(Generator):
    """.env.example documenting the placeholders."""

    name = "env"
    description = ".env.example"

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        self._render(result, "env-example", Path(".env.example"))
        return result


class GeneratorRegistry:
    """Registry of scaffold generators, in generation order."""

    _generators: dict[str, type[Generator]] = {}

    @classmethod
    def register(cls, generator_class: type[Generator]) -> type[Generator]:
        """Register a generator class under its name."""
        cls._generators[generator_class.name] = generator_class
        return generator_class

    @classmethod
    def get(cls, name: str) -> type[Generator] | None:
        """Get a generator class by name."""
        return cls._generators.get(name)

    @classmethod
    def names(cls) -> list[str]:
        """Registered generator names in registration order."""
        return list(cls._generators)


for _generator in [DockerGenerator, ComposeGenerator, CIGenerator, EnvGenerator]:
    GeneratorRegistry.register(_generator)
