"""
Generation manifest.

Tracks what viteship last wrote in ``.viteship.json`` so a later run can
tell an untouched generated file (safe to update) from one the user has
edited (left alone unless forced).
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = ".viteship.json"


@dataclass
class FileRecord:
    """Checksum of one generated file."""

    path: str
    template: str
    checksum: str


@dataclass
class ScaffoldManifest:
    """Metadata for the last generation run."""

    viteship_version: str
    generated_at: str
    variant: str
    files: list[FileRecord] = field(default_factory=list)

    def checksum_for(self, path: str) -> str | None:
        """Recorded checksum for a relative path, if any."""
        for record in self.files:
            if record.path == path:
                return record.checksum
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "viteship_version": self.viteship_version,
            "generated_at": self.generated_at,
            "variant": self.variant,
            "files": [
                {"path": f.path, "template": f.template, "checksum": f.checksum}
                for f in self.files
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScaffoldManifest:
        """Create from dictionary."""
        return cls(
            viteship_version=data["viteship_version"],
            generated_at=data["generated_at"],
            variant=data.get("variant", "multistage"),
            files=[
                FileRecord(path=f["path"], template=f["template"], checksum=f["checksum"])
                for f in data.get("files", [])
            ],
        )


def compute_content_checksum(content: str) -> str:
    """Compute SHA-256 checksum of string content."""
    sha256 = hashlib.sha256(content.encode("utf-8"))
    return sha256.hexdigest()[:16]  # Shortened for readability


def load_manifest(project_root: Path) -> ScaffoldManifest | None:
    """
    Load .viteship.json.

    Returns None if the file is absent or unreadable; an unreadable
    manifest only means every existing file is treated as hand-edited.
    """
    path = project_root / MANIFEST_FILENAME
    if not path.exists():
        return None

    try:
        return ScaffoldManifest.from_dict(json.loads(path.read_text()))
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return None


def save_manifest(manifest: ScaffoldManifest, project_root: Path) -> Path:
    """Write .viteship.json and return its path."""
    path = project_root / MANIFEST_FILENAME
    path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n")
    return path


def new_manifest(version: str, variant: str) -> ScaffoldManifest:
    """Start a manifest stamped with the current time."""
    return ScaffoldManifest(
        viteship_version=version,
        generated_at=datetime.now(UTC).isoformat(),
        variant=variant,
    )
