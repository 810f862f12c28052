"""
Scaffold runner - orchestrates analysis, rendering and writing.

The ScaffoldRunner analyzes a project, runs the registered generators and
writes their output, leaving hand-edited files alone unless forced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from viteship._version import get_version
from viteship.core.config import CONFIG_FILENAME, ViteshipConfig, load_config
from viteship.core.project import ProjectProfile, analyze_project

from .generator import GeneratorResult
from .generators import GeneratorRegistry
from .manifest import (
    FileRecord,
    ScaffoldManifest,
    compute_content_checksum,
    load_manifest,
    new_manifest,
    save_manifest,
)
from .templates import TemplateStore, build_context

logger = logging.getLogger(__name__)


class FileAction(str, Enum):
    """What happens to a target file."""

    CREATE = "create"
    UPDATE = "update"  # previously generated and not edited since
    OVERWRITE = "overwrite"  # edited by hand, replaced because forced
    UNCHANGED = "unchanged"
    SKIP = "skip"  # edited by hand, left alone


@dataclass
class PlannedFile:
    """A rendered file and what writing it would do."""

    path: Path
    template: str
    content: str
    action: FileAction

    @property
    def writes(self) -> bool:
        """Whether this file is written to disk."""
        return self.action in (FileAction.CREATE, FileAction.UPDATE, FileAction.OVERWRITE)


@dataclass
class ScaffoldResult:
    """Result of a scaffold run."""

    planned: list[PlannedFile] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dry_run: bool = False
    manifest_path: Path | None = None

    @property
    def success(self) -> bool:
        """Check if the run was successful (no errors)."""
        return len(self.errors) == 0

    @property
    def written(self) -> list[PlannedFile]:
        """Files written (or that would be, in a dry run)."""
        return [p for p in self.planned if p.writes]

    @property
    def skipped(self) -> list[PlannedFile]:
        """Hand-edited files left alone."""
        return [p for p in self.planned if p.action == FileAction.SKIP]

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def summary(self) -> str:
        """Get a summary of the run."""
        if not self.success:
            return f"Generation failed with {len(self.errors)} errors"

        verb = "Would write" if self.dry_run else "Wrote"
        lines = [f"{verb} {len(self.written)} files"]
        if self.skipped:
            lines.append(f"Skipped {len(self.skipped)} edited files (use --force to replace)")
        if self.warnings:
            lines.append(f"Warnings: {len(self.warnings)}")
        return "\n".join(lines)


class ScaffoldRunner:
    """
    Orchestrates scaffold generation for one project.

    Usage:
        runner = ScaffoldRunner(project_root)
        result = runner.run()
    """

    def __init__(
        self,
        project_root: Path,
        config: ViteshipConfig | None = None,
        profile: ProjectProfile | None = None,
    ):
        """
        Initialize the runner.

        Args:
            project_root: Root of the Vite project
            config: Optional configuration (loaded from viteship.toml if not provided)
            profile: Optional pre-computed analysis

        Raises:
            ConfigError: If viteship.toml is invalid
            ProjectAnalysisError: If the project cannot be analyzed
        """
        self.project_root = project_root.resolve()

        if config is None:
            config = load_config(self.project_root / CONFIG_FILENAME)
        self.config = config

        self.profile = profile or analyze_project(self.project_root, config)
        self.store = TemplateStore()
        self.context = build_context(self.profile, self.config)

    def render(self, only: list[str] | None = None) -> GeneratorResult:
        """Run generators and collect rendered files without touching disk."""
        combined = GeneratorResult()
        names = only or GeneratorRegistry.names()

        for name in names:
            generator_class = GeneratorRegistry.get(name)
            if generator_class is None:
                known = ", ".join(GeneratorRegistry.names())
                combined.add_error(f"Unknown generator: {name} (known: {known})")
                continue

            generator = generator_class(self.profile, self.config, self.store, self.context)
            result = generator.generate()
            combined.merge(result)

        return combined

    def plan(self, only: list[str] | None = None, force: bool = False) -> ScaffoldResult:
        """Render and decide, per file, what writing would do."""
        result = ScaffoldResult(dry_run=True)
        result.warnings.extend(self.profile.warnings)

        rendered = self.render(only)
        result.errors.extend(rendered.errors)
        result.warnings.extend(rendered.warnings)

        manifest = load_manifest(self.project_root)
        overwrite = force or self.config.output.overwrite

        for rel_path, content in rendered.files.items():
            action = self._decide(rel_path, content, manifest, overwrite)
            if action == FileAction.SKIP:
                result.add_warning(f"{rel_path} was edited since it was generated; not replacing")
            result.planned.append(
                PlannedFile(rel_path, rendered.templates[rel_path], content, action)
            )

        return result

    def run(
        self,
        only: list[str] | None = None,
        force: bool = False,
        dry_run: bool = False,
    ) -> ScaffoldResult:
        """
        Generate and write scaffold files.

        Args:
            only: Generator names to run (default: all)
            force: Replace files edited since they were generated
            dry_run: Plan only, write nothing

        Returns:
            ScaffoldResult describing each file
        """
        result = self.plan(only, force)
        result.dry_run = dry_run

        if dry_run or not result.success:
            return result

        for planned in result.written:
            path = self.project_root / planned.path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(planned.content)
            logger.info("%s %s", planned.action.value, planned.path)

        result.manifest_path = save_manifest(self._next_manifest(result), self.project_root)
        return result

    def _decide(
        self,
        rel_path: Path,
        content: str,
        manifest: ScaffoldManifest | None,
        overwrite: bool,
    ) -> FileAction:
        path = self.project_root / rel_path
        if not path.exists():
            return FileAction.CREATE

        current = path.read_text()
        if current == content:
            return FileAction.UNCHANGED

        recorded = manifest.checksum_for(rel_path.as_posix()) if manifest else None
        if recorded is not None and recorded == compute_content_checksum(current):
            return FileAction.UPDATE

        return FileAction.OVERWRITE if overwrite else FileAction.SKIP

    def _next_manifest(self, result: ScaffoldResult) -> ScaffoldManifest:
        """Manifest for this run, keeping records of files not touched."""
        previous = load_manifest(self.project_root)
        manifest = new_manifest(get_version(), self.config.build.variant.value)

        touched: set[str] = set()
        for planned in result.planned:
            if planned.action == FileAction.SKIP:
                continue
            rel = planned.path.as_posix()
            touched.add(rel)
            manifest.files.append(
                FileRecord(rel, planned.template, compute_content_checksum(planned.content))
            )

        if previous:
            for record in previous.files:
                if record.path not in touched:
                    manifest.files.append(record)

        manifest.files.sort(key=lambda r: r.path)
        return manifest
