"""Tests for search and retrieval."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshelf.errors import UserInputError
from docshelf.index.search import get_document, list_sections, search_documents
from docshelf.index.store import CommittedStore

HOOKS = """# Hooks reference

Intro paragraph.

## Configuration

Hooks are configured in settings.json.

### Matchers

Use a regex such as Edit|Write.

## Hook events

```bash
# not a heading
echo PreToolUse
```

PreToolUse runs before a tool.
"""


@pytest.fixture
def store(tmp_path: Path) -> CommittedStore:
    store = CommittedStore(tmp_path)
    store.write("hooks.md", HOOKS)
    store.write("settings.md", "# Settings\n\nEdit settings.json to configure docshelf.\n")
    return store


class TestSearchDocuments:
    """Test search_documents."""

    def test_matches_across_documents(self, store: CommittedStore) -> None:
        matches = search_documents(store, "settings\\.json")

        assert [(match.filename, match.line_number) for match in matches] == [("hooks.md", 7), ("settings.md", 3)]
        assert matches[0].section == "hooks"

    def test_case_insensitive_by_default(self, store: CommittedStore) -> None:
        assert search_documents(store, "PRETOOLUSE")
        assert not search_documents(store, "PRETOOLUSE", case_insensitive=False)

    def test_invalid_regex_falls_back_to_literal(self, store: CommittedStore) -> None:
        matches = search_documents(store, "Edit|Write.(")

        assert matches == []
        assert len(search_documents(store, "(settings")) == 0

    def test_literal_fallback_finds_text(self, tmp_path: Path) -> None:
        store = CommittedStore(tmp_path)
        store.write("a.md", "call fn( now\n")

        matches = search_documents(store, "fn(")

        assert [match.matched_line for match in matches] == ["call fn( now"]

    def test_context_lines(self, store: CommittedStore) -> None:
        match = search_documents(store, "Intro paragraph", context_lines=1)[0]

        assert match.context == "\nIntro paragraph.\n"

    def test_empty_query(self, store: CommittedStore) -> None:
        with pytest.raises(UserInputError):
            search_documents(store, "  ")


class TestListSections:
    """Test list_sections."""

    def test_headings_outside_code(self) -> None:
        headings = list_sections(HOOKS)

        assert [(h.level, h.anchor) for h in headings] == [
            (1, "hooks-reference"),
            (2, "configuration"),
            (3, "matchers"),
            (2, "hook-events"),
        ]


class TestGetDocument:
    """Test get_document."""

    def test_whole_document(self, store: CommittedStore) -> None:
        assert get_document(store, "hooks") == HOOKS
        assert get_document(store, "hooks.md") == HOOKS

    def test_section_includes_subsections(self, store: CommittedStore) -> None:
        section = get_document(store, "hooks#configuration")

        assert section.startswith("## Configuration\n")
        assert "### Matchers" in section
        assert "Hook events" not in section

    def test_last_section_runs_to_end(self, store: CommittedStore) -> None:
        section = get_document(store, "hooks#hook-events")

        assert section.rstrip().endswith("PreToolUse runs before a tool.")

    def test_missing_document(self, store: CommittedStore) -> None:
        with pytest.raises(UserInputError, match="Document not found"):
            get_document(store, "nope")

    def test_missing_section(self, store: CommittedStore) -> None:
        with pytest.raises(UserInputError, match="Section not found"):
            get_document(store, "hooks#nope")

    def test_path_traversal_rejected(self, store: CommittedStore) -> None:
        with pytest.raises(UserInputError):
            get_document(store, "../secrets")
