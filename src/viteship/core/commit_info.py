"""
Build-time commit metadata.

Resolves the short commit hash and commit date that are baked into the
image as ``commit.txt``. Each value is taken from an explicit build
argument when one is given, otherwise from the local git history, and
falls back to the literal ``"unknown"``. The Dockerfile templates carry
the same resolution as a shell expression; this module is what the CLI
and the verification step use.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
COMMIT_FILENAME = "commit.txt"

HASH_COMMAND = ["git", "rev-parse", "--short", "HEAD"]
DATE_COMMAND = ["git", "log", "-1", "--format=%cI"]

GIT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class CommitInfo:
    """Commit hash and date as written to commit.txt."""

    hash: str
    date: str

    @property
    def is_known(self) -> bool:
        """Whether both values came from an argument or git."""
        return self.hash != UNKNOWN and self.date != UNKNOWN

    def render(self) -> str:
        """Render the two-line commit.txt content."""
        return f"Commit: {self.hash}\nDate: {self.date}\n"

    @classmethod
    def parse(cls, text: str) -> CommitInfo:
        """
        Parse commit.txt content.

        Raises:
            ValueError: If either line is missing or malformed
        """
        lines = text.splitlines()
        if len(lines) < 2 or not lines[0].startswith("Commit: ") or not lines[1].startswith(
            "Date: "
        ):
            raise ValueError("expected 'Commit: <hash>' and 'Date: <date>' lines")
        return cls(hash=lines[0][len("Commit: ") :], date=lines[1][len("Date: ") :])


def run_git(command: list[str], cwd: Path) -> str | None:
    """
    Run a git command and return its stripped output.

    Returns None when git is not installed, the directory is not a
    repository, the command fails, or it prints nothing.
    """
    try:
        completed = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git unavailable for %s: %s", " ".join(command), e)
        return None

    if completed.returncode != 0:
        logger.debug(
            "%s exited %d: %s", " ".join(command), completed.returncode, completed.stderr.strip()
        )
        return None

    output = completed.stdout.strip()
    return output or None


def resolve_value(provided: str | None, command: list[str], cwd: Path) -> str:
    """Provided value if non-empty, else command output, else ``"unknown"``."""
    if provided:
        return provided
    return run_git(command, cwd) or UNKNOWN


def resolve_commit_info(
    cwd: Path,
    commit_hash: str | None = None,
    commit_date: str | None = None,
) -> CommitInfo:
    """
    Resolve commit metadata for a project directory.

    Args:
        cwd: Directory to run git in
        commit_hash: Explicit hash (e.g. the VITE_GIT_COMMIT_HASH build arg)
        commit_date: Explicit date (e.g. the VITE_GIT_COMMIT_DATE build arg)
    """
    info = CommitInfo(
        hash=resolve_value(commit_hash, HASH_COMMAND, cwd),
        date=resolve_value(commit_date, DATE_COMMAND, cwd),
    )
    if not info.is_known:
        logger.info("commit metadata incomplete: hash=%s date=%s", info.hash, info.date)
    return info


def write_commit_file(info: CommitInfo, path: Path) -> Path:
    """Write commit.txt, creating parent directories. Returns the path written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(info.render())
    return path
