"""Search and retrieval over the committed documentation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from docshelf.errors import DocshelfError, UserInputError
from docshelf.index.store import CommittedStore
from docshelf.utils.text import heading_anchor

LOGGER = logging.getLogger(__name__)

_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_FENCE = re.compile(r"^\s*(```|~~~)")


@dataclass(slots=True)
class SearchMatch:
    section: str
    filename: str
    line_number: int
    matched_line: str
    context: str


@dataclass(slots=True)
class Heading:
    level: int
    title: str
    anchor: str
    line_number: int


def _compile(query: str, case_insensitive: bool) -> re.Pattern[str]:
    flags = re.IGNORECASE if case_insensitive else 0
    try:
        return re.compile(query, flags)
    except re.error:
        LOGGER.debug("Invalid regex %r, searching literally", query)
        return re.compile(re.escape(query), flags)


def search_documents(
    store: CommittedStore,
    query: str,
    *,
    context_lines: int = 5,
    case_insensitive: bool = True,
) -> List[SearchMatch]:
    """Find every line matching ``query`` across the committed documents.

    The query is treated as a regular expression; when it does not compile
    it is matched literally instead.
    """
    if not query.strip():
        raise UserInputError("Search query cannot be empty")
    pattern = _compile(query, case_insensitive)
    matches: List[SearchMatch] = []
    for filename in store.filenames():
        content = store.read(filename) or ""
        lines = content.splitlines()
        for index, line in enumerate(lines):
            if not pattern.search(line):
                continue
            start = max(0, index - context_lines)
            end = min(len(lines), index + context_lines + 1)
            matches.append(
                SearchMatch(
                    section=filename.removesuffix(".md"),
                    filename=filename,
                    line_number=index + 1,
                    matched_line=line,
                    context="\n".join(lines[start:end]),
                )
            )
    return matches


def list_sections(content: str) -> List[Heading]:
    """Markdown headings of a document, skipping fenced code."""
    headings: List[Heading] = []
    in_fence = False
    for number, line in enumerate(content.splitlines(), 1):
        if _FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING.match(line)
        if match:
            title = match.group(2)
            headings.append(Heading(len(match.group(1)), title, heading_anchor(title), number))
    return headings


def _extract_section(content: str, anchor: str) -> Optional[str]:
    lines = content.splitlines()
    headings = list_sections(content)
    for position, heading in enumerate(headings):
        if heading.anchor != anchor.lower():
            continue
        end = len(lines)
        for following in headings[position + 1 :]:
            if following.level <= heading.level:
                end = following.line_number - 1
                break
        return "\n".join(lines[heading.line_number - 1 : end]).rstrip() + "\n"
    return None


def get_document(store: CommittedStore, target: str) -> str:
    """Return a document by slug, or one of its sections with ``slug#anchor``."""
    slug, _, anchor = target.strip().partition("#")
    if not slug:
        raise UserInputError("Document name cannot be empty")
    filename = slug if slug.endswith(".md") else f"{slug}.md"
    try:
        content = store.read(filename)
    except DocshelfError as exc:
        raise UserInputError(f"Invalid document name: {slug}") from exc
    if content is None:
        raise UserInputError(f"Document not found: {slug}")
    if not anchor:
        return content
    section = _extract_section(content, anchor)
    if section is None:
        raise UserInputError(f"Section not found: {slug}#{anchor}")
    return section
