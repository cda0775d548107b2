"""Rendering of command results for people, AI agents and scripts."""

from __future__ import annotations

import dataclasses
import json
import os
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from docshelf.index.search import Heading, SearchMatch
from docshelf.models import CheckResult, CommitResult, DiscardResult, StatusResult


class OutputMode(str, Enum):
    USER = "user"
    AI = "ai"
    JSON = "json"


def detect_output_mode(environ: Optional[Mapping[str, str]] = None) -> OutputMode:
    env = os.environ if environ is None else environ
    requested = env.get("DOCSHELF_OUTPUT", "").strip().lower()
    if requested == "json":
        return OutputMode.JSON
    if requested in {"markdown", "md"}:
        return OutputMode.AI
    if env.get("CLAUDECODE") == "1":
        return OutputMode.AI
    return OutputMode.USER


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    if dataclasses.is_dataclass(value):
        value = dataclasses.asdict(value)
    elif isinstance(value, list):
        value = [dataclasses.asdict(item) if dataclasses.is_dataclass(item) else item for item in value]
    return json.dumps(value, indent=2, default=_json_default, ensure_ascii=False)


def _bullets(title: str, items: List[str]) -> List[str]:
    if not items:
        return []
    return [f"### {title} ({len(items)})", *(f"- {item}" for item in items), ""]


class Renderer:
    """Prints results in the selected output mode."""

    def __init__(self, mode: OutputMode, console: Console | None = None) -> None:
        self.mode = mode
        self.console = console or Console()

    def _plain(self, text: str) -> None:
        # Markdown and JSON go out verbatim, without rich markup or wrapping.
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def error(self, message: str) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(json.dumps({"success": False, "error": message}))
        elif self.mode is OutputMode.AI:
            self._plain(f"**Error:** {message}")
        else:
            self.console.print(f"[red]Error:[/red] {escape(message)}")

    def check(self, result: CheckResult) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(result))
            return

        if self.mode is OutputMode.AI:
            lines = ["## Documentation update check", ""]
            if result.update_available:
                lines.append(f"{result.total_changes} changes pending out of {result.total_sections} sections.")
            else:
                lines.append(f"Documentation is up to date ({result.total_sections} sections).")
            lines.append("")
            lines += _bullets("Added", result.added)
            lines += _bullets("Modified", result.modified)
            lines += _bullets("Deleted", result.deleted)
            lines += _bullets("Failed", result.failed_files)
            if result.update_available:
                lines.append('Run `docshelf update commit "<message>"` to apply, or `docshelf update discard`.')
            self._plain("\n".join(lines).rstrip())
            return

        if not result.update_available:
            self.console.print(f"[green]Documentation is up to date[/green] ({result.total_sections} sections).")
        else:
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Change")
            table.add_column("Document")
            for label, colour, names in (
                ("added", "green", result.added),
                ("modified", "yellow", result.modified),
                ("deleted", "red", result.deleted),
            ):
                for name in names:
                    table.add_row(f"[{colour}]{label}[/{colour}]", escape(name))
            self.console.print(table)
            self.console.print(
                f"Added: {len(result.added)}, modified: {len(result.modified)}, "
                f"deleted: {len(result.deleted)}, unchanged: {len(result.unchanged)}"
            )
            self.console.print('Review, then run [bold]docshelf update commit "<message>"[/bold].')
        if result.failed_files:
            self.console.print(
                f"[yellow]Failed to fetch {len(result.failed_files)} documents:[/yellow] "
                + escape(", ".join(result.failed_files))
            )

    def commit(self, result: CommitResult) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(result))
            return
        summary = result.summary
        if result.nothing_pending:
            message = "Nothing pending to commit."
        else:
            message = (
                f"Committed {summary.added} added, {summary.modified} modified and "
                f"{summary.deleted} deleted documents."
            )
        if self.mode is OutputMode.AI:
            lines = ["## Commit", "", message]
            if summary.failed_files:
                lines += ["", *_bullets("Failed", summary.failed_files)]
            self._plain("\n".join(lines).rstrip())
            return
        self.console.print(f"[green]{message}[/green]" if not result.nothing_pending else message)
        if summary.failed_files:
            self.console.print(f"[yellow]Failed to apply:[/yellow] {escape(', '.join(summary.failed_files))}")

    def discard(self, result: DiscardResult) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(result))
            return
        if result.pending_files == 0 and not result.file_list:
            message = "Nothing pending to discard."
        else:
            message = f"Discarded {result.pending_files} pending changes."
        if self.mode is OutputMode.AI:
            self._plain("\n".join([message, "", *(f"- {name}" for name in result.file_list)]).rstrip())
        else:
            self.console.print(message)

    def status(self, result: StatusResult) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(result))
            return

        age = f"{result.data_age:.1f} hours" if result.data_age is not None else "never updated"
        rows = [
            ("Installed", "yes" if result.installed else "no"),
            ("Documents", f"{result.total_docs} ({result.docs_size})"),
            ("Last update", result.last_update.isoformat() if result.last_update else "never"),
            ("Data age", age),
            ("Pending updates", "yes" if result.pending_updates else "no"),
        ]
        if result.pending_counts:
            counts = result.pending_counts
            rows.append(
                (
                    "Pending changes",
                    f"{counts.get('added', 0)} added, {counts.get('modified', 0)} modified, "
                    f"{counts.get('deleted', 0)} deleted",
                )
            )
        if result.missing_docs:
            rows.append(("Missing docs", ", ".join(result.missing_docs)))
        if result.pending_error:
            rows.append(("Pending error", result.pending_error))

        if self.mode is OutputMode.AI:
            lines = ["## Status", "", *(f"- **{label}:** {value}" for label, value in rows)]
            if result.changelog_entries:
                lines += ["", "### Recent updates"]
                lines += [
                    f"- {entry.timestamp.isoformat()}: {entry.message}" for entry in result.changelog_entries
                ]
            self._plain("\n".join(lines))
            return

        table = Table(show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(label, escape(value))
        self.console.print(table)
        if result.changelog_entries:
            history = Table(title="Recent updates", show_header=True, header_style="bold magenta")
            history.add_column("When")
            history.add_column("Message")
            history.add_column("+/~/-")
            for entry in result.changelog_entries:
                history.add_row(
                    entry.timestamp.strftime("%Y-%m-%d %H:%M"),
                    escape(entry.message),
                    f"{entry.added}/{entry.modified}/{entry.deleted}",
                )
            self.console.print(history)

    def documents(self, names: List[str]) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(names))
        elif self.mode is OutputMode.AI:
            self._plain("\n".join(["## Documents", "", *(f"- {name}" for name in names)]))
        elif not names:
            self.console.print("[yellow]No documents installed. Run docshelf update check.[/yellow]")
        else:
            for name in names:
                self.console.print(name, markup=False)

    def sections(self, document: str, headings: List[Heading]) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(headings))
            return
        if self.mode is OutputMode.AI:
            lines = [f"## {document}", ""]
            lines += [f"{'  ' * (h.level - 1)}- {h.title} (`{document}#{h.anchor}`)" for h in headings]
            self._plain("\n".join(lines))
            return
        for heading in headings:
            indent = "  " * (heading.level - 1)
            self.console.print(f"{indent}{escape(heading.title)} [dim]#{escape(heading.anchor)}[/dim]")

    def document(self, target: str, content: str) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(json.dumps({"document": target, "content": content}, ensure_ascii=False))
        elif self.mode is OutputMode.AI:
            self._plain(content.rstrip())
        else:
            self.console.print(Markdown(content))

    def search(self, query: str, matches: List[SearchMatch]) -> None:
        if self.mode is OutputMode.JSON:
            self._plain(to_json(matches))
            return
        if self.mode is OutputMode.AI:
            if not matches:
                self._plain(f'No matches for "{query}".')
                return
            lines = [f'## Search results for "{query}" ({len(matches)})', ""]
            for match in matches:
                lines += [f"### {match.section}:{match.line_number}", "", "```", match.context, "```", ""]
            self._plain("\n".join(lines).rstrip())
            return
        if not matches:
            self.console.print("[yellow]No matches found.[/yellow]")
            return
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Document")
        table.add_column("Line")
        table.add_column("Match")
        for match in matches:
            table.add_row(escape(match.section), str(match.line_number), escape(match.matched_line.strip()[:180]))
        self.console.print(table)
