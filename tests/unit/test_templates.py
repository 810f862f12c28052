"""
Unit tests for the template store and rendered templates.
"""

from pathlib import Path

import pytest
import yaml

from viteship.core.config import ViteshipConfig
from viteship.core.errors import TemplateNotFoundError, TemplateRenderError
from viteship.core.project import ProjectProfile, analyze_project
from viteship.scaffold.templates import (
    TemplateStore,
    build_context,
    get_template,
    github_expression,
    list_templates,
)
from viteship.scaffold.verify import find_template_markers


@pytest.fixture
def store() -> TemplateStore:
    return TemplateStore()


def render(store: TemplateStore, key: str, profile: ProjectProfile, config: ViteshipConfig) -> str:
    return store.render(key, build_context(profile, config))


class TestTemplateStore:
    """Tests for template lookup."""

    def test_all_templates_listed(self) -> None:
        """Should ship every deployment template."""
        keys = [spec.key for spec in list_templates()]

        assert keys == [
            "dockerfile",
            "dockerfile-prebuilt",
            "nginx",
            "dockerignore",
            "compose",
            "workflow",
            "env-example",
        ]

    def test_unknown_template(self, store: TemplateStore) -> None:
        """Should raise TemplateNotFoundError for unknown keys."""
        with pytest.raises(TemplateNotFoundError):
            get_template("kubernetes")
        with pytest.raises(TemplateNotFoundError):
            store.source("kubernetes")

    def test_source_is_unrendered(self, store: TemplateStore) -> None:
        """Should return raw text with substitution points intact."""
        assert "{{ health_path }}" in store.source("nginx")

    def test_every_source_loads(self, store: TemplateStore) -> None:
        """Should read every template source through the package loader."""
        for spec in list_templates():
            assert "# Generated by viteship {{ generator_version }}" in store.source(spec.key)

    def test_workflow_target_follows_setting(self) -> None:
        """Should show the workflow path as depending on ci.workflow_file."""
        assert get_template("workflow").target == ".github/workflows/<ci.workflow_file>"

    def test_missing_variable(self, store: TemplateStore) -> None:
        """Should refuse to render with an incomplete context."""
        with pytest.raises(TemplateRenderError) as exc_info:
            store.render("nginx", {"generator_version": "1.0"})

        assert exc_info.value.context.key == "nginx"

    def test_github_expression(self) -> None:
        """Should wrap expressions in ${{ }}."""
        assert github_expression("secrets.TOKEN") == "${{ secrets.TOKEN }}"

    @pytest.mark.parametrize("key", [spec.key for spec in list_templates()])
    def test_rendered_output_has_no_markers(
        self,
        store: TemplateStore,
        key: str,
        profile: ProjectProfile,
        config: ViteshipConfig,
    ) -> None:
        """Should leave no Jinja syntax behind."""
        assert find_template_markers(render(store, key, profile, config)) == []


class TestDockerfile:
    """Tests for the Dockerfile templates."""

    def test_multistage(self, store, profile, config) -> None:
        """Should build with Node and serve with Nginx."""
        content = render(store, "dockerfile", profile, config)

        assert "FROM node:20-alpine AS build" in content
        assert "COPY package.json package-lock.json ./" in content
        assert "RUN npm ci" in content
        assert "ARG VITE_GIT_COMMIT_HASH" in content
        assert "ARG VITE_GIT_COMMIT_DATE" in content
        assert "git rev-parse --short HEAD 2>/dev/null || echo unknown" in content
        assert "git log -1 --format=%cI 2>/dev/null || echo unknown" in content
        assert "npm run build" in content
        assert "FROM nginx:1.27-alpine" in content
        assert "COPY --from=build /app/dist /usr/share/nginx/html" in content
        assert "http://127.0.0.1/health" in content
        assert "EXPOSE 80" in content
        assert "RUN apk add --no-cache git" in content

    def test_multistage_without_git(self, store, vite_project: Path) -> None:
        """Should not install git when metadata comes only from build args."""
        config = ViteshipConfig.model_validate({"build": {"include_git_metadata": False}})
        profile = analyze_project(vite_project, config)

        content = render(store, "dockerfile", profile, config)

        assert "apk add" not in content

    def test_pnpm_enables_corepack(self, store, vite_project: Path) -> None:
        """Should enable corepack for pnpm."""
        (vite_project / "package-lock.json").unlink()
        (vite_project / "pnpm-lock.yaml").write_text("lockfileVersion: '9.0'\n")
        config = ViteshipConfig()
        profile = analyze_project(vite_project, config)

        content = render(store, "dockerfile", profile, config)

        assert "RUN corepack enable" in content
        assert "COPY package.json pnpm-lock.yaml ./" in content
        assert "RUN pnpm install --frozen-lockfile" in content

    def test_bun_build_image(self, store, vite_project: Path) -> None:
        """Should build bun projects on the bun image."""
        config = ViteshipConfig.model_validate({"build": {"package_manager": "bun"}})
        profile = analyze_project(vite_project, config)

        assert "FROM oven/bun:1-alpine AS build" in render(store, "dockerfile", profile, config)

    def test_prebuilt(self, store, profile, config) -> None:
        """Should copy the output dir and default commit metadata to unknown."""
        content = render(store, "dockerfile-prebuilt", profile, config)

        assert "AS build" not in content
        assert "COPY dist /usr/share/nginx/html" in content
        assert '"${VITE_GIT_COMMIT_HASH:-unknown}"' in content
        assert '"${VITE_GIT_COMMIT_DATE:-unknown}"' in content


class TestNginx:
    """Tests for nginx.conf."""

    def test_health_endpoint(self, store, profile, config) -> None:
        """Should answer the configured health path."""
        content = render(store, "nginx", profile, config)

        assert "location = /health {" in content
        assert 'return 200 "ok\\n";' in content
        assert "try_files $uri $uri/ /index.html;" in content

    def test_custom_health_path(self, store, profile) -> None:
        """Should use server.health_path."""
        config = ViteshipConfig.model_validate({"server": {"health_path": "/healthz"}})

        assert "location = /healthz {" in render(store, "nginx", profile, config)


class TestDockerignore:
    """Tests for .dockerignore."""

    def test_multistage_excludes_output(self, store, profile, config) -> None:
        """Should exclude local build output and keep .git."""
        lines = render(store, "dockerignore", profile, config).splitlines()

        assert "node_modules" in lines
        assert "dist" in lines
        assert ".git" not in lines
        assert ".env" not in lines

    def test_prebuilt_keeps_output(self, store, profile) -> None:
        """Should keep the output dir the prebuilt Dockerfile copies."""
        config = ViteshipConfig.model_validate({"build": {"variant": "prebuilt"}})

        assert "dist" not in render(store, "dockerignore", profile, config).splitlines()

    def test_excludes_git_without_metadata(self, store, profile) -> None:
        """Should exclude .git when metadata comes only from build args."""
        config = ViteshipConfig.model_validate({"build": {"include_git_metadata": False}})

        assert ".git" in render(store, "dockerignore", profile, config).splitlines()


class TestCompose:
    """Tests for docker-compose.yml."""

    def test_compose_reads_environment(self, store, profile, config) -> None:
        """Should read image coordinates and host port from the environment."""
        data = yaml.safe_load(render(store, "compose", profile, config))
        service = data["services"]["demo-app"]

        assert service["image"] == (
            "${DOCKER_REGISTRY:-ghcr.io}/${DOCKER_IMAGE_NAME:-demo-app}:${IMAGE_TAG:-latest}"
        )
        assert service["ports"] == ["${APP_PORT:-3000}:80"]
        assert service["build"]["args"]["VITE_GIT_COMMIT_HASH"] == "${VITE_GIT_COMMIT_HASH:-}"
        assert "/health" in service["healthcheck"]["test"][-1]

    def test_namespaced_image_service_name(self, store, vite_project: Path) -> None:
        """Should name the service after the last image path segment."""
        config = ViteshipConfig.model_validate({"image": {"name": "acme/site"}})
        profile = analyze_project(vite_project, config)

        data = yaml.safe_load(render(store, "compose", profile, config))

        assert list(data["services"]) == ["site"]


class TestWorkflow:
    """Tests for the GitHub Actions workflow."""

    def test_workflow_structure(self, store, profile, config) -> None:
        """Should build, push and trigger Dokploy."""
        content = render(store, "workflow", profile, config)
        data = yaml.safe_load(content)

        # PyYAML reads the bare key `on` as True
        triggers = data[True]
        assert triggers["push"]["branches"] == ["main"]
        assert "workflow_dispatch" in triggers
        assert data["permissions"]["packages"] == "write"
        assert data["env"]["DOCKER_REGISTRY"] == "ghcr.io"
        assert data["env"]["DOCKER_IMAGE_NAME"] == "demo-app"
        assert set(data["jobs"]) == {"build", "deploy"}
        assert data["jobs"]["deploy"]["needs"] == "build"

        assert "${{ secrets.GITHUB_TOKEN }}" in content
        assert "${{ secrets.DOKPLOY_API_KEY }}" in content
        assert "/api/compose.deploy" in content
        assert "x-api-key: ${DOKPLOY_API_KEY}" in content

    def test_build_args_from_commit(self, store, profile, config) -> None:
        """Should pass commit metadata as build args."""
        data = yaml.safe_load(render(store, "workflow", profile, config))
        push = data["jobs"]["build"]["steps"][-1]

        assert push["uses"] == "docker/build-push-action@v6"
        assert "VITE_GIT_COMMIT_HASH=${{ steps.meta.outputs.hash }}" in push["with"]["build-args"]

    def test_bare_ghcr_adds_owner(self, store, profile, config) -> None:
        """Should push under the lowercased repository owner when the registry is bare ghcr.io."""
        data = yaml.safe_load(render(store, "workflow", profile, config))
        steps = {step["name"]: step for step in data["jobs"]["build"]["steps"]}

        assert "${DOCKER_REGISTRY}/${GITHUB_REPOSITORY_OWNER,,}/${DOCKER_IMAGE_NAME}" in steps[
            "Commit metadata"
        ]["run"]
        tags = steps["Build and push image"]["with"]["tags"].split()
        assert tags == [
            "${{ steps.meta.outputs.image }}:${{ steps.meta.outputs.hash }}",
            "${{ steps.meta.outputs.image }}:latest",
        ]
        assert steps["Log in to registry"]["with"]["registry"] == "ghcr.io"

    def test_namespaced_ghcr_keeps_registry(self, store, profile) -> None:
        """Should not add an owner when the registry already names one."""
        config = ViteshipConfig.model_validate({"image": {"registry": "ghcr.io/acme"}})

        content = render(store, "workflow", profile, config)

        assert "GITHUB_REPOSITORY_OWNER" not in content
        assert 'echo "image=${DOCKER_REGISTRY}/${DOCKER_IMAGE_NAME}"' in content
        assert yaml.safe_load(content)["env"]["DOCKER_REGISTRY"] == "ghcr.io/acme"

    def test_without_dokploy(self, store, profile) -> None:
        """Should omit the deploy job."""
        config = ViteshipConfig.model_validate({"ci": {"dokploy": False}})

        data = yaml.safe_load(render(store, "workflow", profile, config))

        assert set(data["jobs"]) == {"build"}

    def test_other_registry_uses_secrets(self, store, profile) -> None:
        """Should log in with DOCKER_USERNAME/DOCKER_PASSWORD outside GHCR."""
        config = ViteshipConfig.model_validate({"image": {"registry": "docker.io/acme"}})

        content = render(store, "workflow", profile, config)
        data = yaml.safe_load(content)

        assert "permissions" not in data
        assert "${{ secrets.DOCKER_USERNAME }}" in content
        login = next(s for s in data["jobs"]["build"]["steps"] if s["name"] == "Log in to registry")
        assert login["with"]["registry"] == "docker.io"

    def test_prebuilt_builds_in_ci(self, store, profile) -> None:
        """Should build the frontend before docker build for the prebuilt variant."""
        config = ViteshipConfig.model_validate({"build": {"variant": "prebuilt"}})

        data = yaml.safe_load(render(store, "workflow", profile, config))
        names = [step["name"] for step in data["jobs"]["build"]["steps"]]

        assert "Setup Node" in names
        assert names.index("Build") < names.index("Build and push image")


class TestEnvExample:
    """Tests for .env.example."""

    def test_documents_placeholders(self, store, profile, config) -> None:
        """Should list every placeholder with its default."""
        content = render(store, "env-example", profile, config)

        assert "DOCKER_REGISTRY=ghcr.io" in content
        assert "DOCKER_IMAGE_NAME=demo-app" in content
        assert "IMAGE_TAG=latest" in content
        assert "APP_PORT=3000" in content
        assert "VITE_GIT_COMMIT_HASH=" in content
        assert "DOKPLOY_COMPOSE_ID=" in content

    def test_includes_app_variables(self, store, vite_project: Path, config) -> None:
        """Should append VITE_* variables found in env files."""
        (vite_project / ".env").write_text("VITE_API_URL=https://api.example.com\n")
        profile = analyze_project(vite_project, config)

        content = render(store, "env-example", profile, config)

        assert "VITE_API_URL=\n" in content
        assert "https://api.example.com" not in content
