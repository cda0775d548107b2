"""Tests for the committed document store."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshelf.errors import DocshelfError
from docshelf.index.store import CommittedStore, check_filename


class TestCheckFilename:
    """Test check_filename."""

    @pytest.mark.parametrize("name", ["", ".", "..", "../escape.md", "nested/doc.md", "win\\doc.md"])
    def test_rejects_unsafe_names(self, name: str) -> None:
        with pytest.raises(DocshelfError):
            check_filename(name)

    def test_accepts_plain_name(self) -> None:
        assert check_filename("hooks.md") == "hooks.md"


class TestCommittedStore:
    """Test CommittedStore."""

    def test_read_missing_returns_none(self, tmp_path: Path) -> None:
        assert CommittedStore(tmp_path / "docs").read("hooks.md") is None

    def test_write_creates_directory(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path / "docs")

        store.write("hooks.md", "# Hooks\n")

        assert store.exists("hooks.md")
        assert store.read("hooks.md") == "# Hooks\n"

    def test_filenames_count_and_size(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        store.write("b.md", "bb")
        store.write("a.md", "a")
        (tmp_path / "ignored.txt").write_text("x")

        assert store.filenames() == ["a.md", "b.md"]
        assert store.count() == 2
        assert store.total_size() == 3

    def test_delete(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        store.write("a.md", "a")

        store.delete("a.md")
        store.delete("a.md")

        assert not store.exists("a.md")
