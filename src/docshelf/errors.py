"""Exception hierarchy for docshelf."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docshelf.models import CommitSummary


class DocshelfError(Exception):
    """Base class for all docshelf errors."""


class ConfigError(DocshelfError):
    """The configuration file is unreadable or invalid."""


class ManifestError(DocshelfError):
    """Remote, cached and bundled manifests all failed to load."""


class FetchError(DocshelfError):
    """A single HTTP attempt failed.

    ``retryable`` tells the retry loop whether another attempt makes sense.
    Never raised past the content fetcher.
    """

    def __init__(self, message: str, *, retryable: bool = True, status_code: int | None = None) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class StagingError(DocshelfError):
    """The pending change set could not be written atomically."""


class CommitError(DocshelfError):
    """Every file of a commit failed; the pending set is kept."""

    def __init__(self, message: str, summary: "CommitSummary") -> None:
        super().__init__(message)
        self.summary = summary


class UserInputError(DocshelfError):
    """Invalid user input, rejected before any state changes."""
