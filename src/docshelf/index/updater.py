"""Update workflow: check, then commit or discard the staged changes."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import httpx

from docshelf.config import AppConfig
from docshelf.errors import CommitError, DocshelfError, StagingError
from docshelf.index.changelog import Changelog, validate_message
from docshelf.index.differ import compute_diff
from docshelf.index.staging import StagingStore
from docshelf.index.store import CommittedStore
from docshelf.ingestion.downloader import DownloadOptions, ProgressCallback, download_all
from docshelf.manifest.loader import ManifestLoader, get_total_sections
from docshelf.models import (
    ChangeKind,
    ChangelogEntry,
    CheckResult,
    CommitResult,
    CommitSummary,
    DiscardResult,
    StatusResult,
)
from docshelf.utils.files import format_bytes, safe_read_file, safe_write_file

LOGGER = logging.getLogger(__name__)


class UpdateState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    PENDING = "pending"
    COMMITTING = "committing"
    DISCARDING = "discarding"


class Updater:
    """Coordinates manifest loading, downloads, diffing and staging."""

    def __init__(
        self,
        config: AppConfig,
        *,
        client: httpx.AsyncClient | None = None,
        loader: ManifestLoader | None = None,
        store: CommittedStore | None = None,
        staging: StagingStore | None = None,
        changelog: Changelog | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.loader = loader or ManifestLoader(config, client=client)
        self.store = store or CommittedStore(config.docs_dir)
        self.staging = staging or StagingStore(config.pending_dir)
        self.changelog = changelog or Changelog(config.changelog_path)
        self.state = UpdateState.PENDING if self.staging.has_pending() else UpdateState.IDLE

    def download_options(self, on_progress: ProgressCallback | None = None) -> DownloadOptions:
        return DownloadOptions(
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            concurrency=self.config.concurrency,
            on_progress=on_progress,
        )

    async def check(self, on_progress: ProgressCallback | None = None) -> CheckResult:
        """Download the current documentation and stage what changed.

        When nothing changed no pending set is left behind, including one
        staged by an earlier check.
        """
        self.state = UpdateState.CHECKING
        try:
            manifest = await self.loader.load()
            total = get_total_sections(manifest)
            LOGGER.info("Checking %d documentation sections", total)

            results = await download_all(manifest, self.download_options(on_progress), client=self.client)
            change_set = await asyncio.to_thread(compute_diff, results, self.store)

            if change_set.has_changes:
                await asyncio.to_thread(self.staging.stage, change_set)
                self.state = UpdateState.PENDING
            else:
                if self.staging.has_pending():
                    LOGGER.info("Up to date; dropping superseded pending changes")
                    await asyncio.to_thread(self.staging.discard)
                self.state = UpdateState.IDLE
        except DocshelfError:
            self.state = UpdateState.PENDING if self.staging.has_pending() else UpdateState.IDLE
            raise

        return CheckResult(
            update_available=change_set.has_changes,
            checked_at=change_set.created_at,
            total_sections=total,
            added=change_set.added,
            modified=change_set.modified,
            deleted=change_set.deleted,
            unchanged=change_set.unchanged,
            failed_files=[result.filename for result in change_set.failed],
        )

    def check_sync(self, on_progress: ProgressCallback | None = None) -> CheckResult:
        return asyncio.run(self.check(on_progress))

    def commit(self, message: str) -> CommitResult:
        """Apply the pending set to the committed store.

        Best effort: a file that cannot be written or removed is reported in
        ``failed_files`` while the rest are applied. Only when every file
        fails is :class:`CommitError` raised, and the pending set is kept.
        """
        message = validate_message(message)
        change_set = self.staging.read_pending()
        if change_set is None:
            LOGGER.info("Nothing pending to commit")
            self.state = UpdateState.IDLE
            return CommitResult(success=True, nothing_pending=True)

        self.state = UpdateState.COMMITTING
        summary = CommitSummary(total=len(change_set.entries))
        committed_files = []
        for entry in change_set.entries:
            if entry.kind is ChangeKind.UNCHANGED:
                summary.increment(entry.kind)
                continue
            try:
                if entry.kind is ChangeKind.DELETED:
                    self.store.delete(entry.filename)
                else:
                    self.store.write(entry.filename, entry.content or "")
            except DocshelfError as exc:
                LOGGER.error("Failed to commit %s: %s", entry.filename, exc)
                summary.record_failure(entry.filename)
                continue
            summary.increment(entry.kind)
            committed_files.append(entry.filename)

        if summary.succeeded == 0 and summary.failed > 0:
            self.state = UpdateState.PENDING
            raise CommitError(
                f"Commit failed for all {summary.failed} files: {', '.join(summary.failed_files)}",
                summary,
            )

        now = datetime.now(timezone.utc)
        entry = ChangelogEntry(
            timestamp=now,
            message=message,
            added=summary.added,
            modified=summary.modified,
            deleted=summary.deleted,
            failed=summary.failed,
            files=tuple(committed_files),
        )
        # Cleared first so a retried commit cannot log the same set twice.
        try:
            self.staging.discard()
        except StagingError:
            self.state = UpdateState.PENDING
            raise
        self.changelog.append(entry)
        self._record_update(now, [result.filename for result in change_set.failed])
        self.state = UpdateState.IDLE
        LOGGER.info(
            "Committed %d added, %d modified, %d deleted (%d failed)",
            summary.added,
            summary.modified,
            summary.deleted,
            summary.failed,
        )
        return CommitResult(success=True, summary=summary, changelog_entry=entry)

    def discard(self) -> DiscardResult:
        if not self.staging.has_pending():
            LOGGER.info("Nothing pending to discard")
            self.state = UpdateState.IDLE
            return DiscardResult(success=True)
        self.state = UpdateState.DISCARDING
        files = self.staging.discard()
        self.state = UpdateState.IDLE
        return DiscardResult(success=True, pending_files=len(files), file_list=files)

    def status(self) -> StatusResult:
        last_update = self.last_update()
        data_age = None
        if last_update is not None:
            data_age = (datetime.now(timezone.utc) - last_update).total_seconds() / 3600
        pending_error = None
        try:
            change_set = self.staging.read_pending()
        except StagingError as exc:
            change_set = None
            pending_error = str(exc)
        return StatusResult(
            installed=last_update is not None or self.store.count() > 0,
            pending_updates=change_set is not None or pending_error is not None,
            pending_error=pending_error,
            data_age=data_age,
            last_update=last_update,
            pending_counts=change_set.counts() if change_set else {},
            changelog_entries=self.changelog.recent(),
            total_docs=self.store.count(),
            docs_size=format_bytes(self.store.total_size()),
            missing_docs=self.missing_docs(),
        )

    def last_update(self) -> Optional[datetime]:
        path = self.config.last_update_path
        if not path.exists():
            return None
        try:
            return datetime.fromisoformat(safe_read_file(path).strip())
        except (DocshelfError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable %s: %s", path, exc)
            return None

    def missing_docs(self) -> list[str]:
        path = self.config.missing_docs_path
        if not path.exists():
            return []
        return [line.strip() for line in safe_read_file(path).splitlines() if line.strip()]

    def _record_update(self, when: datetime, failed_files: list[str]) -> None:
        try:
            safe_write_file(self.config.last_update_path, when.isoformat())
            if failed_files:
                safe_write_file(self.config.missing_docs_path, "\n".join(failed_files) + "\n")
            else:
                self.config.missing_docs_path.unlink(missing_ok=True)
        except (DocshelfError, OSError) as exc:
            LOGGER.warning("Unable to record update metadata: %s", exc)
