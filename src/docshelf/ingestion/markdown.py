"""Conversion of the upstream MDX dialect into plain markdown.

The documentation site serves MDX with a handful of custom components. They
are rewritten into ordinary markdown so the files read well in a terminal
and in plain-text search:

* callouts (``<Note>``, ``<Tip>``, ``<Warning>``, ``<Info>``) become blockquotes
* ``<CardGroup>``/``<Card>`` become bullet lists
* ``<Tabs>``/``<Tab>`` become ``###`` sections
* ``<Steps>``/``<Step>`` become numbered lists
* code fence attributes (``theme={null}``, ``showLineNumbers``) are dropped
* the client-side ``<MCPServersTable />`` component is removed
* internal ``/en/<slug>`` links point at ``docshelf get <slug>``
"""

from __future__ import annotations

import re

from docshelf.utils.text import clean_whitespace

_CALLOUTS = {
    "Note": "📝 Note",
    "Tip": "💡 Tip",
    "Warning": "⚠️ Warning",
    "Info": "ℹ️ Info",
}

_CARD = re.compile(r'<Card\s+title="([^"]+)"[^>]*>(.*?)</Card>', re.IGNORECASE | re.DOTALL)
_TAB = re.compile(r'<Tab\s+title="([^"]+)"[^>]*>(.*?)</Tab>', re.IGNORECASE | re.DOTALL)
_STEPS = re.compile(r"<Steps[^>]*>(.*?)</Steps>", re.IGNORECASE | re.DOTALL)
_STEP = re.compile(r"<Step[^>]*>(.*?)</Step>", re.IGNORECASE | re.DOTALL)
_MCP_TAG = re.compile(r"<MCPServersTable[^>]*/>")
_MCP_EXPORT = re.compile(r"^export const MCPServersTable.*?^};$", re.MULTILINE | re.DOTALL)
_INTERNAL_LINK = re.compile(r"\[([^\]]+)\]\(/(?:docs/)?en/([^)]+)\)")


def transform_callouts(content: str) -> str:
    for tag, label in _CALLOUTS.items():
        content = re.sub(rf"<{tag}>\s*", f"\n> **{label}:**  \n> ", content, flags=re.IGNORECASE)
        content = re.sub(rf"</{tag}>", "\n\n", content, flags=re.IGNORECASE)
    return content


def transform_cards(content: str) -> str:
    content = re.sub(r"</?CardGroup[^>]*>", "\n", content, flags=re.IGNORECASE)
    return _CARD.sub(lambda m: f"\n- **{m.group(1)}**: {m.group(2).strip()}\n", content)


def transform_tabs(content: str) -> str:
    content = re.sub(r"</?Tabs[^>]*>", "\n", content, flags=re.IGNORECASE)
    return _TAB.sub(lambda m: f"\n### {m.group(1)}\n\n{m.group(2).strip()}\n", content)


def transform_steps(content: str) -> str:
    def _numbered(match: re.Match[str]) -> str:
        steps = [step.strip() for step in _STEP.findall(match.group(1)) if step.strip()]
        return "\n" + "\n".join(f"{index}. {step}" for index, step in enumerate(steps, 1)) + "\n"

    return _STEPS.sub(_numbered, content)


def transform_code_blocks(content: str) -> str:
    content = re.sub(r"```(\w+)\s+theme=\{[^}]+\}", r"```\1", content)
    content = re.sub(r"```(\w+)\s+\{[^}]+\}", r"```\1", content)
    return re.sub(r"```(\w+)\s+showLineNumbers", r"```\1", content)


def transform_mcp_component(content: str) -> str:
    content = _MCP_EXPORT.sub("", content)
    return _MCP_TAG.sub("", content)


def transform_internal_links(content: str) -> str:
    return _INTERNAL_LINK.sub(lambda m: f"{m.group(1)} - Read with `docshelf get {m.group(2)}`", content)


def transform_markdown(content: str) -> str:
    """Apply every transformation in order and normalise whitespace."""
    content = transform_callouts(content)
    content = transform_cards(content)
    content = transform_tabs(content)
    content = transform_steps(content)
    content = transform_code_blocks(content)
    content = transform_mcp_component(content)
    content = transform_internal_links(content)
    return clean_whitespace(content)
