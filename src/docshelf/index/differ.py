"""Classification of freshly downloaded documents against the committed store."""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Sequence

from docshelf.index.store import CommittedStore
from docshelf.models import ChangeEntry, ChangeKind, DownloadResult, PendingChangeSet
from docshelf.utils.files import sha256_text
from docshelf.utils.text import normalize_for_compare, normalize_line_endings

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DiffResult:
    filename: str
    has_changes: bool
    diff: str
    lines_added: int
    lines_removed: int


def content_digest(content: str) -> str:
    return sha256_text(normalize_for_compare(content))


def generate_diff(filename: str, old_content: str, new_content: str, context: int = 3) -> DiffResult:
    """Unified diff between the committed and the new version of a document."""
    lines = list(
        difflib.unified_diff(
            normalize_line_endings(old_content).splitlines(keepends=True),
            normalize_line_endings(new_content).splitlines(keepends=True),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
            n=context,
        )
    )
    added = sum(1 for line in lines if line.startswith("+") and not line.startswith("+++"))
    removed = sum(1 for line in lines if line.startswith("-") and not line.startswith("---"))
    return DiffResult(
        filename=filename,
        has_changes=bool(lines),
        diff="".join(lines),
        lines_added=added,
        lines_removed=removed,
    )


def compute_diff(
    results: Sequence[DownloadResult],
    store: CommittedStore,
    *,
    now: datetime | None = None,
) -> PendingChangeSet:
    """Classify every manifest document and every committed file.

    Successful downloads become added, modified or unchanged in manifest
    order. Committed files missing from the manifest follow as deleted,
    sorted by name. Failed downloads are not classified; they are carried in
    ``failed`` so callers can tell them apart from unchanged documents.
    """
    entries: List[ChangeEntry] = []
    failed: List[DownloadResult] = []
    manifest_files = {result.filename for result in results}

    for result in results:
        if not result.success or result.content is None:
            failed.append(result)
            continue

        new_digest = content_digest(result.content)
        old_content = store.read(result.filename)
        if old_content is None:
            entries.append(
                ChangeEntry(
                    filename=result.filename,
                    kind=ChangeKind.ADDED,
                    content=result.content,
                    sha256=new_digest,
                    lines_added=len(result.content.splitlines()),
                )
            )
            continue

        old_digest = content_digest(old_content)
        if old_digest == new_digest:
            entries.append(
                ChangeEntry(
                    filename=result.filename,
                    kind=ChangeKind.UNCHANGED,
                    sha256=new_digest,
                    old_sha256=old_digest,
                )
            )
            continue

        diff = generate_diff(result.filename, old_content, result.content)
        entries.append(
            ChangeEntry(
                filename=result.filename,
                kind=ChangeKind.MODIFIED,
                content=result.content,
                sha256=new_digest,
                old_sha256=old_digest,
                lines_added=diff.lines_added,
                lines_removed=diff.lines_removed,
                diff=diff.diff,
            )
        )

    for filename in sorted(set(store.filenames()) - manifest_files):
        old_content = store.read(filename) or ""
        entries.append(
            ChangeEntry(
                filename=filename,
                kind=ChangeKind.DELETED,
                old_sha256=content_digest(old_content),
                lines_removed=len(old_content.splitlines()),
            )
        )

    change_set = PendingChangeSet(
        created_at=now or datetime.now(timezone.utc),
        entries=entries,
        failed=failed,
    )
    LOGGER.info("Diff computed: %s", change_set.counts())
    return change_set
