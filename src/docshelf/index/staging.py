"""Staging area holding the single pending change set.

Layout of the pending directory::

    .pending/
        manifest.json           classifications, hashes, failures, counts
        downloads/<filename>    new content of added and modified documents
        diffs/<filename>.diff   unified diff of modified documents

A change set is built in a sibling temporary directory and swapped into
place with ``os.replace``, so readers only ever see a complete set.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from docshelf.errors import DocshelfError, StagingError
from docshelf.index.store import check_filename
from docshelf.models import ChangeEntry, ChangeKind, DownloadResult, PendingChangeSet
from docshelf.utils.files import ensure_dir, safe_read_file

LOGGER = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
DOWNLOADS_DIR = "downloads"
DIFFS_DIR = "diffs"
FORMAT_VERSION = 1


def _entry_to_dict(entry: ChangeEntry) -> dict:
    return {
        "filename": entry.filename,
        "kind": entry.kind.value,
        "sha256": entry.sha256,
        "old_sha256": entry.old_sha256,
        "lines_added": entry.lines_added,
        "lines_removed": entry.lines_removed,
    }


class StagingStore:
    """Owns the pending change set; at most one exists at any time."""

    def __init__(self, pending_dir: Path) -> None:
        self.pending_dir = Path(pending_dir)

    @property
    def manifest_path(self) -> Path:
        return self.pending_dir / MANIFEST_NAME

    def has_pending(self) -> bool:
        return self.manifest_path.is_file()

    def stage(self, change_set: PendingChangeSet) -> None:
        """Persist ``change_set``, replacing any previous pending set.

        Raises :class:`StagingError` when the set cannot be written; the
        previous pending set, if any, is left untouched in that case.
        """
        parent = self.pending_dir.parent
        try:
            ensure_dir(parent)
            self._remove_leftovers()
            build_dir = Path(tempfile.mkdtemp(prefix=f"{self.pending_dir.name}.tmp-", dir=parent))
        except (DocshelfError, OSError) as exc:
            raise StagingError(f"Unable to prepare staging area in {parent}: {exc}") from exc

        try:
            self._write_set(build_dir, change_set)
            self._swap_in(build_dir)
        except (DocshelfError, OSError) as exc:
            shutil.rmtree(build_dir, ignore_errors=True)
            raise StagingError(f"Failed to stage pending changes: {exc}") from exc

        LOGGER.info("Staged pending changes: %s", change_set.counts())

    def read_pending(self) -> Optional[PendingChangeSet]:
        """Load the pending set, or None when nothing is staged.

        A staged set that cannot be read raises :class:`StagingError`; it is
        neither applied nor silently dropped.
        """
        if not self.has_pending():
            return None
        try:
            payload = json.loads(safe_read_file(self.manifest_path))
            entries = [self._load_entry(item) for item in payload["entries"]]
            failed = [
                DownloadResult(
                    filename=item["filename"],
                    success=False,
                    error=item.get("error"),
                    retries=int(item.get("retries", 0)),
                )
                for item in payload.get("failed", [])
            ]
            return PendingChangeSet(
                created_at=datetime.fromisoformat(payload["created_at"]),
                entries=entries,
                failed=failed,
            )
        except (DocshelfError, ValueError, KeyError, TypeError) as exc:
            LOGGER.error("Unreadable pending change set in %s: %s", self.pending_dir, exc)
            raise StagingError(
                f"Pending changes in {self.pending_dir} are damaged ({exc}). "
                "Run `docshelf update discard` and check again."
            ) from exc

    def pending_files(self) -> List[str]:
        """Filenames of the staged changes, without loading their content."""
        if not self.has_pending():
            return []
        try:
            payload = json.loads(safe_read_file(self.manifest_path))
        except (DocshelfError, ValueError) as exc:
            LOGGER.error("Unreadable pending manifest %s: %s", self.manifest_path, exc)
            return []
        return [
            item["filename"]
            for item in payload.get("entries", [])
            if item.get("kind") != ChangeKind.UNCHANGED.value
        ]

    def discard(self) -> List[str]:
        """Delete the pending area. Returns the discarded filenames."""
        if not self.pending_dir.exists():
            return []
        files = self.pending_files()
        try:
            shutil.rmtree(self.pending_dir)
        except OSError as exc:
            raise StagingError(
                f"Failed to remove pending changes in {self.pending_dir}: {exc.strerror or exc}"
            ) from exc
        LOGGER.info("Discarded %d pending changes", len(files))
        return files

    def _write_set(self, build_dir: Path, change_set: PendingChangeSet) -> None:
        downloads = build_dir / DOWNLOADS_DIR
        diffs = build_dir / DIFFS_DIR
        downloads.mkdir()
        diffs.mkdir()

        for entry in change_set.entries:
            check_filename(entry.filename)
            if entry.kind in (ChangeKind.ADDED, ChangeKind.MODIFIED):
                if entry.content is None:
                    raise StagingError(f"No content to stage for {entry.filename}")
                (downloads / entry.filename).write_text(entry.content, encoding="utf-8")
            if entry.kind is ChangeKind.MODIFIED and entry.diff:
                (diffs / f"{entry.filename}.diff").write_text(entry.diff, encoding="utf-8")

        payload = {
            "version": FORMAT_VERSION,
            "created_at": change_set.created_at.isoformat(),
            "counts": change_set.counts(),
            "entries": [_entry_to_dict(entry) for entry in change_set.entries],
            "failed": [
                {"filename": result.filename, "error": result.error, "retries": result.retries}
                for result in change_set.failed
            ],
        }
        # Written last: its presence marks a complete set.
        (build_dir / MANIFEST_NAME).write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _swap_in(self, build_dir: Path) -> None:
        backup: Path | None = None
        if self.pending_dir.exists():
            backup = self.pending_dir.with_name(f"{self.pending_dir.name}.old-{build_dir.name[-8:]}")
            os.replace(self.pending_dir, backup)
        try:
            os.replace(build_dir, self.pending_dir)
        except OSError:
            if backup is not None:
                os.replace(backup, self.pending_dir)
            raise
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)

    def _remove_leftovers(self) -> None:
        """Clean up after a stage that was interrupted mid-swap.

        A backup without a live pending set is the previous set, so it is
        restored rather than deleted.
        """
        parent = self.pending_dir.parent
        backups = sorted(parent.glob(f"{self.pending_dir.name}.old-*"))
        if backups and not self.pending_dir.exists():
            os.replace(backups[0], self.pending_dir)
        for pattern in (f"{self.pending_dir.name}.tmp-*", f"{self.pending_dir.name}.old-*"):
            for leftover in parent.glob(pattern):
                if leftover.is_dir():
                    shutil.rmtree(leftover, ignore_errors=True)

    def _load_entry(self, item: dict) -> ChangeEntry:
        kind = ChangeKind(item["kind"])
        filename = check_filename(item["filename"])
        content = None
        diff = None
        if kind in (ChangeKind.ADDED, ChangeKind.MODIFIED):
            content = safe_read_file(self.pending_dir / DOWNLOADS_DIR / filename)
        diff_path = self.pending_dir / DIFFS_DIR / f"{filename}.diff"
        if kind is ChangeKind.MODIFIED and diff_path.is_file():
            diff = safe_read_file(diff_path)
        return ChangeEntry(
            filename=filename,
            kind=kind,
            content=content,
            sha256=item.get("sha256"),
            old_sha256=item.get("old_sha256"),
            lines_added=int(item.get("lines_added", 0)),
            lines_removed=int(item.get("lines_removed", 0)),
            diff=diff,
        )
