"""Tests for the diff engine."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from docshelf.index.differ import compute_diff, content_digest, generate_diff
from docshelf.index.store import CommittedStore
from docshelf.models import ChangeKind, DownloadResult


def _ok(filename: str, content: str) -> DownloadResult:
    return DownloadResult(filename=filename, success=True, content=content)


def _failed(filename: str) -> DownloadResult:
    return DownloadResult(filename=filename, success=False, error="HTTP 500: Internal Server Error", retries=3)


class TestGenerateDiff:
    """Test generate_diff."""

    def test_counts_and_headers(self) -> None:
        diff = generate_diff("a.md", "one\ntwo\nthree\n", "one\n2\nthree\nfour\n")

        assert diff.has_changes
        assert diff.diff.startswith("--- a/a.md\n+++ b/a.md\n")
        assert diff.lines_added == 2
        assert diff.lines_removed == 1

    def test_identical(self) -> None:
        diff = generate_diff("a.md", "same\n", "same\n")

        assert not diff.has_changes
        assert diff.diff == ""


class TestContentDigest:
    """Test content_digest."""

    def test_ignores_line_endings_and_outer_whitespace(self) -> None:
        assert content_digest("# A\r\nbody\r\n") == content_digest("# A\nbody\n\n")


class TestComputeDiff:
    """Test compute_diff."""

    def test_first_run_everything_added(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path / "docs")

        change_set = compute_diff([_ok("a.md", "a\nb\n"), _ok("b.md", "b\n")], store)

        assert change_set.added == ["a.md", "b.md"]
        assert change_set.entries[0].lines_added == 2
        assert change_set.modified == change_set.deleted == change_set.unchanged == []

    def test_full_classification(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        store.write("same.md", "# Same\n")
        store.write("changed.md", "# Old\n")
        store.write("zeta-removed.md", "gone\n")
        store.write("alpha-removed.md", "gone\n")
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)

        change_set = compute_diff(
            [_ok("new.md", "# New\n"), _ok("changed.md", "# New\n"), _ok("same.md", "# Same\r\n")],
            store,
            now=now,
        )

        assert change_set.created_at == now
        assert [(entry.filename, entry.kind) for entry in change_set.entries] == [
            ("new.md", ChangeKind.ADDED),
            ("changed.md", ChangeKind.MODIFIED),
            ("same.md", ChangeKind.UNCHANGED),
            ("alpha-removed.md", ChangeKind.DELETED),
            ("zeta-removed.md", ChangeKind.DELETED),
        ]
        modified = change_set.entries[1]
        assert modified.content == "# New\n"
        assert modified.old_sha256 != modified.sha256
        assert "-# Old" in modified.diff
        assert change_set.entries[2].content is None

    def test_every_filename_classified_once(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        for name in ("a.md", "b.md", "c.md"):
            store.write(name, name)

        change_set = compute_diff([_ok("b.md", "b.md"), _ok("c.md", "changed"), _ok("d.md", "d")], store)

        names = [entry.filename for entry in change_set.entries]
        assert sorted(names) == ["a.md", "b.md", "c.md", "d.md"]
        assert len(names) == len(set(names))

    def test_failed_downloads_not_deleted(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        store.write("flaky.md", "# Flaky\n")
        store.write("ok.md", "# Ok\n")

        change_set = compute_diff([_failed("flaky.md"), _ok("ok.md", "# Ok\n")], store)

        assert change_set.deleted == []
        assert [result.filename for result in change_set.failed] == ["flaky.md"]
        assert not change_set.has_changes
