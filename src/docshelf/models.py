"""Core docshelf data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional


@dataclass(slots=True, frozen=True)
class DocumentSection:
    """One documentation page listed in the manifest."""

    title: str
    url: str
    filename: str
    description: str

    @property
    def slug(self) -> str:
        return self.filename.removesuffix(".md")


@dataclass(slots=True)
class Category:
    name: str
    slug: str
    description: str
    docs: List[DocumentSection] = field(default_factory=list)


@dataclass(slots=True)
class ResourceConfiguration:
    """The full manifest: ordered categories of documents."""

    categories: List[Category] = field(default_factory=list)

    def iter_documents(self) -> Iterator[DocumentSection]:
        for category in self.categories:
            yield from category.docs

    def find(self, name: str) -> Optional[DocumentSection]:
        """Look up a document by slug or filename."""
        filename = name if name.endswith(".md") else f"{name}.md"
        for doc in self.iter_documents():
            if doc.filename == filename:
                return doc
        return None


@dataclass(slots=True)
class DownloadProgress:
    total: int
    completed: int
    failed: int
    current: Optional[str]


@dataclass(slots=True, frozen=True)
class DownloadResult:
    """Outcome of fetching one document."""

    filename: str
    success: bool
    error: Optional[str] = None
    retries: int = 0
    content: Optional[str] = None


@dataclass(slots=True)
class DownloadSummary:
    total: int
    successful: int
    failed: int
    failed_files: List[str] = field(default_factory=list)


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class ChangeEntry:
    """Classification of one filename after diffing."""

    filename: str
    kind: ChangeKind
    content: Optional[str] = None
    sha256: Optional[str] = None
    old_sha256: Optional[str] = None
    lines_added: int = 0
    lines_removed: int = 0
    diff: Optional[str] = None


@dataclass(slots=True)
class PendingChangeSet:
    """Staged result of one check, waiting to be committed or discarded."""

    created_at: datetime
    entries: List[ChangeEntry] = field(default_factory=list)
    failed: List[DownloadResult] = field(default_factory=list)

    def _filenames(self, kind: ChangeKind) -> List[str]:
        return [entry.filename for entry in self.entries if entry.kind is kind]

    @property
    def added(self) -> List[str]:
        return self._filenames(ChangeKind.ADDED)

    @property
    def modified(self) -> List[str]:
        return self._filenames(ChangeKind.MODIFIED)

    @property
    def deleted(self) -> List[str]:
        return self._filenames(ChangeKind.DELETED)

    @property
    def unchanged(self) -> List[str]:
        return self._filenames(ChangeKind.UNCHANGED)

    @property
    def changes(self) -> List[ChangeEntry]:
        return [entry for entry in self.entries if entry.kind is not ChangeKind.UNCHANGED]

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "modified": len(self.modified),
            "deleted": len(self.deleted),
            "unchanged": len(self.unchanged),
            "failed": len(self.failed),
        }


@dataclass(slots=True, frozen=True)
class ChangelogEntry:
    """Immutable record of a completed commit."""

    timestamp: datetime
    message: str
    added: int = 0
    modified: int = 0
    deleted: int = 0
    failed: int = 0
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "added": self.added,
            "modified": self.modified,
            "deleted": self.deleted,
            "failed": self.failed,
            "files": list(self.files),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChangelogEntry":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            message=data["message"],
            added=int(data.get("added", 0)),
            modified=int(data.get("modified", 0)),
            deleted=int(data.get("deleted", 0)),
            failed=int(data.get("failed", 0)),
            files=tuple(data.get("files", ())),
        )


@dataclass(slots=True)
class CommitSummary:
    total: int = 0
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0
    added: int = 0
    modified: int = 0
    deleted: int = 0
    failed_files: List[str] = field(default_factory=list)

    def increment(self, kind: ChangeKind) -> None:
        if kind is ChangeKind.ADDED:
            self.added += 1
            self.downloaded += 1
        elif kind is ChangeKind.MODIFIED:
            self.modified += 1
            self.downloaded += 1
        elif kind is ChangeKind.DELETED:
            self.deleted += 1
        else:
            self.skipped += 1

    def record_failure(self, filename: str) -> None:
        self.failed += 1
        self.failed_files.append(filename)

    @property
    def succeeded(self) -> int:
        return self.added + self.modified + self.deleted


@dataclass(slots=True)
class CheckResult:
    update_available: bool
    checked_at: datetime
    total_sections: int = 0
    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.modified) + len(self.deleted)


@dataclass(slots=True)
class CommitResult:
    success: bool
    summary: CommitSummary = field(default_factory=CommitSummary)
    changelog_entry: Optional[ChangelogEntry] = None
    nothing_pending: bool = False


@dataclass(slots=True)
class DiscardResult:
    success: bool
    pending_files: int = 0
    file_list: List[str] = field(default_factory=list)


@dataclass(slots=True)
class StatusResult:
    installed: bool
    pending_updates: bool
    data_age: Optional[float] = None
    pending_error: Optional[str] = None
    last_update: Optional[datetime] = None
    pending_counts: dict[str, int] = field(default_factory=dict)
    changelog_entries: List[ChangelogEntry] = field(default_factory=list)
    total_docs: int = 0
    docs_size: str = "0 B"
    missing_docs: List[str] = field(default_factory=list)
