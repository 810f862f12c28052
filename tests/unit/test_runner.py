"""
Unit tests for scaffold generation and the generation manifest.
"""

import json
from pathlib import Path

from viteship.core.config import ViteshipConfig
from viteship.scaffold.generators import (
    CIGenerator,
    ComposeGenerator,
    DockerGenerator,
    GeneratorRegistry,
)
from viteship.scaffold.manifest import (
    MANIFEST_FILENAME,
    compute_content_checksum,
    load_manifest,
)
from viteship.scaffold.runner import FileAction, ScaffoldRunner
from viteship.scaffold.templates import TemplateStore, build_context

EXPECTED_FILES = {
    "Dockerfile",
    "nginx.conf",
    ".dockerignore",
    "docker-compose.yml",
    ".github/workflows/deploy.yml",
    ".env.example",
}


def actions(result) -> dict[str, FileAction]:
    return {p.path.as_posix(): p.action for p in result.planned}


class TestGeneratorRegistry:
    """Tests for GeneratorRegistry."""

    def test_generators_registered_in_order(self) -> None:
        """Should register the four generators in generation order."""
        assert GeneratorRegistry.names() == ["docker", "compose", "ci", "env"]

    def test_get_unknown(self) -> None:
        """Should return None for unknown names."""
        assert GeneratorRegistry.get("helm") is None


class TestGenerators:
    """Tests for individual generators."""

    def test_docker_generator_prebuilt(self, profile) -> None:
        """Should render the prebuilt Dockerfile and warn about the output dir."""
        config = ViteshipConfig.model_validate({"build": {"variant": "prebuilt"}})
        generator = DockerGenerator(profile, config, TemplateStore(), build_context(profile, config))

        result = generator.generate()

        assert result.success
        assert result.templates[Path("Dockerfile")] == "dockerfile-prebuilt"
        assert set(result.files) == {Path("Dockerfile"), Path("nginx.conf"), Path(".dockerignore")}
        assert any("dist/" in w for w in result.warnings)

    def test_ci_generator_disabled(self, profile) -> None:
        """Should render nothing when CI is turned off."""
        config = ViteshipConfig.model_validate({"ci": {"provider": "none"}})
        generator = CIGenerator(profile, config, TemplateStore(), build_context(profile, config))

        assert generator.generate().files == {}

    def test_ci_generator_custom_file(self, profile) -> None:
        """Should write to the configured workflow file."""
        config = ViteshipConfig.model_validate({"ci": {"workflow_file": "ship.yml"}})
        generator = CIGenerator(profile, config, TemplateStore(), build_context(profile, config))

        result = generator.generate()

        assert Path(".github/workflows/ship.yml") in result.files

    def test_compose_generator_bare_ghcr(self, profile) -> None:
        """Should warn when GHCR has no owner namespace, and not otherwise."""
        config = ViteshipConfig()
        generator = ComposeGenerator(profile, config, TemplateStore(), build_context(profile, config))

        assert any("ghcr.io/<owner>" in w for w in generator.generate().warnings)

        config = ViteshipConfig.model_validate({"image": {"registry": "ghcr.io/acme"}})
        generator = ComposeGenerator(profile, config, TemplateStore(), build_context(profile, config))

        assert generator.generate().warnings == []


class TestScaffoldRunner:
    """Tests for ScaffoldRunner."""

    def test_first_run_creates_everything(self, vite_project: Path) -> None:
        """Should create every file and a manifest."""
        result = ScaffoldRunner(vite_project).run()

        assert result.success
        assert set(actions(result)) == EXPECTED_FILES
        assert set(actions(result).values()) == {FileAction.CREATE}
        for rel in EXPECTED_FILES:
            assert (vite_project / rel).exists()

        manifest = load_manifest(vite_project)
        assert manifest is not None
        assert manifest.variant == "multistage"
        assert {r.path for r in manifest.files} == EXPECTED_FILES
        dockerfile = (vite_project / "Dockerfile").read_text()
        assert manifest.checksum_for("Dockerfile") == compute_content_checksum(dockerfile)

    def test_dry_run_writes_nothing(self, vite_project: Path) -> None:
        """Should plan without touching disk."""
        result = ScaffoldRunner(vite_project).run(dry_run=True)

        assert result.dry_run
        assert len(result.written) == len(EXPECTED_FILES)
        assert not (vite_project / "Dockerfile").exists()
        assert not (vite_project / MANIFEST_FILENAME).exists()
        assert result.summary().startswith("Would write 6 files")

    def test_second_run_is_unchanged(self, vite_project: Path) -> None:
        """Should leave identical files alone."""
        ScaffoldRunner(vite_project).run()

        result = ScaffoldRunner(vite_project).run()

        assert set(actions(result).values()) == {FileAction.UNCHANGED}
        assert result.written == []

    def test_untouched_file_is_updated(self, vite_project: Path) -> None:
        """Should update a generated file when its inputs change."""
        ScaffoldRunner(vite_project).run()
        (vite_project / "viteship.toml").write_text('[server]\nhealth_path = "/healthz"\n')

        result = ScaffoldRunner(vite_project).run()

        assert actions(result)["nginx.conf"] == FileAction.UPDATE
        assert "location = /healthz" in (vite_project / "nginx.conf").read_text()

    def test_edited_file_is_skipped(self, vite_project: Path) -> None:
        """Should not replace a hand-edited file."""
        ScaffoldRunner(vite_project).run()
        nginx = vite_project / "nginx.conf"
        nginx.write_text("# my own config\n")
        (vite_project / "viteship.toml").write_text('[server]\nhealth_path = "/healthz"\n')

        result = ScaffoldRunner(vite_project).run()

        assert actions(result)["nginx.conf"] == FileAction.SKIP
        assert nginx.read_text() == "# my own config\n"
        assert any("nginx.conf" in w for w in result.warnings)
        assert "Skipped 1 edited files" in result.summary()

        # The skipped file keeps its previous manifest record
        manifest = load_manifest(vite_project)
        assert manifest.checksum_for("nginx.conf") is not None

    def test_force_overwrites_edited_file(self, vite_project: Path) -> None:
        """Should replace a hand-edited file when forced."""
        ScaffoldRunner(vite_project).run()
        nginx = vite_project / "nginx.conf"
        nginx.write_text("# my own config\n")

        result = ScaffoldRunner(vite_project).run(force=True)

        assert actions(result)["nginx.conf"] == FileAction.OVERWRITE
        assert "location = /health" in nginx.read_text()

    def test_preexisting_file_without_manifest(self, vite_project: Path) -> None:
        """Should treat files viteship did not write as edited."""
        (vite_project / "Dockerfile").write_text("FROM scratch\n")

        result = ScaffoldRunner(vite_project).run()

        assert actions(result)["Dockerfile"] == FileAction.SKIP
        assert (vite_project / "Dockerfile").read_text() == "FROM scratch\n"

    def test_only_one_generator(self, vite_project: Path) -> None:
        """Should run only the named generators."""
        result = ScaffoldRunner(vite_project).run(only=["compose"])

        assert set(actions(result)) == {"docker-compose.yml"}
        assert not (vite_project / "Dockerfile").exists()

    def test_unknown_generator(self, vite_project: Path) -> None:
        """Should fail without writing anything."""
        result = ScaffoldRunner(vite_project).run(only=["helm"])

        assert not result.success
        assert "Unknown generator: helm" in result.errors[0]
        assert not (vite_project / MANIFEST_FILENAME).exists()

    def test_manifest_keeps_other_records(self, vite_project: Path) -> None:
        """Should keep records of files not rendered in a partial run."""
        ScaffoldRunner(vite_project).run()

        ScaffoldRunner(vite_project).run(only=["compose"])

        data = json.loads((vite_project / MANIFEST_FILENAME).read_text())
        assert {f["path"] for f in data["files"]} == EXPECTED_FILES

    def test_unreadable_manifest(self, vite_project: Path) -> None:
        """Should ignore a corrupt manifest."""
        (vite_project / MANIFEST_FILENAME).write_text("{broken")

        assert load_manifest(vite_project) is None
        assert ScaffoldRunner(vite_project).run().success
