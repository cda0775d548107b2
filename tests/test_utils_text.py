"""Tests for text helpers."""

from __future__ import annotations

from docshelf.utils.text import clean_whitespace, heading_anchor, normalize_for_compare


class TestNormalizeForCompare:
    """Test the canonical comparison form."""

    def test_line_endings_and_outer_whitespace_ignored(self) -> None:
        assert normalize_for_compare("# A\r\nbody\r\n\n") == normalize_for_compare("\n# A\nbody")

    def test_inner_changes_preserved(self) -> None:
        assert normalize_for_compare("a\nb") != normalize_for_compare("a\n\nb")


class TestCleanWhitespace:
    """Test clean_whitespace."""

    def test_trailing_spaces_removed(self) -> None:
        assert clean_whitespace("line   \nnext\t\n") == "line\nnext\n"

    def test_blank_runs_collapsed(self) -> None:
        assert clean_whitespace("a\n\n\n\n\nb") == "a\n\nb\n"

    def test_single_final_newline(self) -> None:
        assert clean_whitespace("\n\ntext\n\n\n") == "text\n"


class TestHeadingAnchor:
    """Test heading_anchor."""

    def test_github_style(self) -> None:
        assert heading_anchor("Getting Started") == "getting-started"

    def test_punctuation_dropped(self) -> None:
        assert heading_anchor("What's new? (v2)") == "whats-new-v2"

    def test_hyphens_kept(self) -> None:
        assert heading_anchor("Pre-commit hooks") == "pre-commit-hooks"
