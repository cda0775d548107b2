"""Append-only history of committed updates, stored as JSON Lines."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from docshelf.errors import DocshelfError, UserInputError
from docshelf.models import ChangelogEntry
from docshelf.utils.files import ensure_dir

LOGGER = logging.getLogger(__name__)

MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 1000
VAGUE_MESSAGES = frozenset({"update", "fix", "change", "modified", "updated"})


def validate_message(message: str | None) -> str:
    """Return the trimmed commit message or raise :class:`UserInputError`."""
    trimmed = (message or "").strip()
    if not trimmed:
        raise UserInputError("Changelog message cannot be empty")
    if len(trimmed) < MIN_MESSAGE_LENGTH:
        raise UserInputError(f"Changelog too short (min {MIN_MESSAGE_LENGTH} chars, got {len(trimmed)})")
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        raise UserInputError(f"Changelog too long (max {MAX_MESSAGE_LENGTH} chars, got {len(trimmed)})")
    if trimmed.lower() in VAGUE_MESSAGES:
        raise UserInputError(
            f'Changelog too vague: "{trimmed}". Please be more specific about what changed.'
        )
    return trimmed


class Changelog:
    """One JSON object per line; entries are only ever appended."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, entry: ChangelogEntry) -> None:
        ensure_dir(self.path.parent)
        try:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as exc:
            raise DocshelfError(f"Failed to append to changelog {self.path}: {exc}") from exc

    def entries(self) -> List[ChangelogEntry]:
        """All entries, oldest first. Corrupt lines are skipped."""
        if not self.path.exists():
            return []
        entries: List[ChangelogEntry] = []
        with self.path.open(encoding="utf-8") as handle:
            for number, line in enumerate(handle, 1):
                if not line.strip():
                    continue
                try:
                    entries.append(ChangelogEntry.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError) as exc:
                    LOGGER.warning("Skipping corrupt changelog line %s in %s: %s", number, self.path, exc)
        return entries

    def recent(self, limit: int = 20) -> List[ChangelogEntry]:
        """Newest entries first."""
        return list(reversed(self.entries()))[:limit]

    def latest(self) -> ChangelogEntry | None:
        entries = self.entries()
        return entries[-1] if entries else None
