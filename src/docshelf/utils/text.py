"""Text helpers shared by the transformer, differ and search."""

from __future__ import annotations

import re

_TRAILING_WS = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{3,}")
_SLUG_STRIP = re.compile(r"[^\w\- ]")


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n")


def normalize_for_compare(text: str) -> str:
    """Canonical form used to decide whether two documents differ."""
    return normalize_line_endings(text).strip()


def clean_whitespace(text: str) -> str:
    """Normalise line endings, trim trailing spaces and collapse blank runs.

    The result always ends with exactly one newline.
    """
    text = normalize_line_endings(text)
    text = _TRAILING_WS.sub("", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip() + "\n"


def heading_anchor(heading: str) -> str:
    """GitHub style anchor for a markdown heading."""
    anchor = _SLUG_STRIP.sub("", heading.strip().lower())
    return anchor.replace(" ", "-")
