"""Best-effort git helpers for the CLI layer.

The comparator, scorer and differ never shell out. Commands that need a commit
SHA or a baseline document, and the blame-dated exception expiry, call in here.
"""

import logging
import subprocess
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"


def git_output(repo_root: Path, *args: str) -> str | None:
    """Return stripped stdout of a git command, or None when it fails."""
    try:
        out = subprocess.check_output(
            ["git", "-C", str(repo_root), *args],
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("git %s failed in %s: %s", " ".join(args), repo_root, exc)
        return None
    return out.decode("utf-8", errors="replace").strip() or None


def head_sha(repo_root: Path) -> str:
    """Commit SHA of HEAD, or ``"unknown"`` outside a git checkout."""
    return git_output(repo_root, "rev-parse", "HEAD") or UNKNOWN_VERSION


def show_file(repo_root: Path, ref: str, relative_path: str) -> str | None:
    """Contents of ``relative_path`` at ``ref``, or None if it does not exist there."""
    try:
        out = subprocess.check_output(
            ["git", "-C", str(repo_root), "show", f"{ref}:{relative_path}"],
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("git show %s:%s failed: %s", ref, relative_path, exc)
        return None
    return out.decode("utf-8", errors="replace")


def line_commit_time(repo_root: Path, relative_path: str, line: int) -> datetime | None:
    """Commit time of the last change to one line, via ``git blame``.

    Returns None for uncommitted lines or outside a git checkout.
    """
    out = git_output(repo_root, "blame", "--porcelain", "-L", f"{line},{line}", "--", relative_path)
    if out is None:
        return None
    for entry in out.splitlines():
        if entry.startswith("committer-time "):
            return datetime.fromtimestamp(int(entry.split()[1]), tz=UTC)
    return None
