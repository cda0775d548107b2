"""Tests for file utility functions."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from docshelf.errors import DocshelfError
from docshelf.utils.files import (
    ensure_dir,
    format_bytes,
    iter_markdown_paths,
    safe_read_file,
    safe_write_file,
    sha256_text,
)


class TestIterMarkdownPaths:
    """Test iter_markdown_paths function."""

    def test_sorted_markdown_only(self, tmp_path: Path) -> None:
        (tmp_path / "b.md").write_text("b")
        (tmp_path / "a.md").write_text("a")
        (tmp_path / "notes.txt").write_text("x")

        names = [path.name for path in iter_markdown_paths(tmp_path)]

        assert names == ["a.md", "b.md"]

    def test_ignores_subdirectories(self, tmp_path: Path) -> None:
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "deep.md").write_text("deep")

        assert list(iter_markdown_paths(tmp_path)) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list(iter_markdown_paths(tmp_path / "missing")) == []


class TestHashing:
    """Test hashing helpers."""

    def test_sha256_text(self) -> None:
        assert sha256_text("abc") == hashlib.sha256(b"abc").hexdigest()


class TestSafeFileOperations:
    """Test safe read and atomic write."""

    def test_write_then_read(self, tmp_path: Path) -> None:
        path = tmp_path / "sub" / "doc.md"

        safe_write_file(path, "# Title\n")

        assert safe_read_file(path) == "# Title\n"

    def test_write_replaces_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_text("old")

        safe_write_file(path, "new")

        assert path.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["doc.md"]

    def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocshelfError, match="File not found"):
            safe_read_file(tmp_path / "missing.md")

    def test_write_failure_leaves_no_temp_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("docshelf.utils.files.os.replace", broken_replace)

        with pytest.raises(DocshelfError, match="Failed to write file"):
            safe_write_file(tmp_path / "doc.md", "content")
        assert list(tmp_path.iterdir()) == []

    def test_ensure_dir_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"

        assert ensure_dir(target) == target
        assert target.is_dir()


class TestFormatBytes:
    """Test format_bytes."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, "0 B"), (512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB")],
    )
    def test_format(self, size: int, expected: str) -> None:
        assert format_bytes(size) == expected
