"""Scanner for in-repo fleet policy exception annotations.

A downstream repository may opt out of one governed surface by placing an
annotation in a comment inside any of that surface's files::

    // fleet-policy-exception: FLEET-SURF-003 — custom lint rules for legacy code
    # fleet-policy-exception: FLEET-SURF-007 - vendored workflow, reviewed by security

The separator may be an em dash, an en dash, or an ASCII ``-``/``--``
surrounded by spaces.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ripplegov.drift.types import PolicyException

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

EXCEPTION_MARKER = "fleet-policy-exception:"

_EXCEPTION_RE = re.compile(
    r"(?://|#|/\*|<!--|--|;)\s*fleet-policy-exception:\s*"
    r"(?P<surface>[A-Za-z0-9][A-Za-z0-9_.-]*?)"
    r"\s*(?:—|–|\s--?\s)\s*"
    r"(?P<justification>.+?)\s*(?:\*/|-->)?\s*$"
)


def parse_exception_line(line: str, file: str, line_number: int) -> PolicyException | None:
    """Parse one source line; ``None`` when it carries no annotation."""
    if EXCEPTION_MARKER not in line:
        return None
    match = _EXCEPTION_RE.search(line)
    if match is None:
        return None
    justification = match.group("justification").strip()
    if not justification:
        return None
    return PolicyException(
        surface_id=match.group("surface"),
        justification=justification,
        file=file,
        line=line_number,
    )


class ExceptionScanner:
    """Finds policy exception annotations in target repository files."""

    def scan_text(self, text: str, file: str) -> list[PolicyException]:
        """Return every annotation in ``text``, in line order."""
        found: list[PolicyException] = []
        for index, line in enumerate(text.splitlines(), start=1):
            parsed = parse_exception_line(line, file, index)
            if parsed is not None:
                found.append(parsed)
        return found

    def scan_paths(self, root: Path, paths: Iterable[str]) -> list[PolicyException]:
        """Scan the given relative paths under ``root``; missing or unreadable files are skipped."""
        found: list[PolicyException] = []
        for relative in paths:
            full_path = root / relative
            if not full_path.is_file():
                continue
            try:
                text = full_path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Could not scan %s for policy exceptions: %s", full_path, exc)
                continue
            found.extend(self.scan_text(text, relative))
        return found

    def exceptions_for(self, root: Path, surface_id: str, paths: Iterable[str]) -> list[PolicyException]:
        """Annotations under ``root`` that reference ``surface_id``."""
        return [item for item in self.scan_paths(root, paths) if item.surface_id == surface_id]
