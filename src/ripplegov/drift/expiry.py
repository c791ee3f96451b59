"""Age-based expiry of policy exception annotations."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from functools import partial
from pathlib import Path

from ripplegov.drift.types import PolicyException
from ripplegov.utils.git import line_commit_time

CommitTimeLookup = Callable[[str, int], "datetime | None"]


def expiry_filter(
    expiry_days: int,
    commit_time: CommitTimeLookup,
    now: datetime,
) -> Callable[[PolicyException], bool]:
    """Build an ``is_active`` predicate for ``check_surface``.

    ``commit_time(file, line)`` reports when the annotation line was last
    committed. Annotations with no known commit time (uncommitted edits,
    no version control) stay active.
    """
    limit = timedelta(days=expiry_days)

    def is_active(exception: PolicyException) -> bool:
        committed = commit_time(exception.file, exception.line)
        if committed is None:
            return True
        return now - committed <= limit

    return is_active


def blame_expiry_filter(
    repo_root: Path,
    expiry_days: int,
    now: datetime,
) -> Callable[[PolicyException], bool]:
    """Expiry predicate for one checkout, dated by ``git blame`` of each annotation line."""
    return expiry_filter(expiry_days, partial(line_commit_time, repo_root), now)
