"""Shared pytest fixtures for viteship tests."""

import json
from pathlib import Path

import pytest

from viteship.core.config import ViteshipConfig
from viteship.core.project import ProjectProfile, analyze_project


def write_package_json(root: Path, **fields) -> Path:
    """Write a package.json with sensible Vite defaults."""
    data = {
        "name": "demo-app",
        "private": True,
        "scripts": {"dev": "vite", "build": "vite build"},
        "devDependencies": {"vite": "^5.4.0"},
    }
    data.update(fields)
    path = root / "package.json"
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture
def vite_project(tmp_path: Path) -> Path:
    """Create a minimal npm + Vite project."""
    root = tmp_path / "demo"
    root.mkdir()
    write_package_json(root)
    (root / "package-lock.json").write_text("{}")
    (root / "vite.config.ts").write_text(
        "import { defineConfig } from 'vite'\nexport default defineConfig({})\n"
    )
    (root / ".nvmrc").write_text("v20.11.1\n")
    return root


@pytest.fixture
def config() -> ViteshipConfig:
    """Default configuration."""
    return ViteshipConfig()


@pytest.fixture
def profile(vite_project: Path, config: ViteshipConfig) -> ProjectProfile:
    """Analysis of the default project."""
    return analyze_project(vite_project, config)


@pytest.fixture
def package_json():
    """Factory writing package.json into a directory."""
    return write_package_json
