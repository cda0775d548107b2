"""Command line interface for docshelf."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from docshelf.config import AppConfig, load_config
from docshelf.errors import CommitError, DocshelfError
from docshelf.index.search import get_document, list_sections, search_documents
from docshelf.index.store import CommittedStore
from docshelf.index.updater import Updater
from docshelf.models import CheckResult, DownloadProgress
from docshelf.output import OutputMode, Renderer, detect_output_mode

console = Console()
app = typer.Typer(help="docshelf - local mirror of the Claude Code documentation")
update_app = typer.Typer(help="Check for, review and apply documentation updates")
app.add_typer(update_app, name="update")

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _setup_logging(
    verbose: bool,
    log_file: Optional[Path] = None,
    *,
    level: str = "info",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    resolved = logging.DEBUG if verbose else LOG_LEVELS.get(level, logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        handlers.append(file_handler)
    logging.basicConfig(level=resolved, format="[%(levelname)s] %(message)s", handlers=handlers, force=True)


def _renderer() -> Renderer:
    return Renderer(detect_output_mode(), console)


def _bootstrap(verbose: bool, renderer: Renderer) -> AppConfig:
    """Load configuration and configure logging; exits with status 1 on bad config."""
    try:
        config = load_config()
    except DocshelfError as exc:
        _setup_logging(verbose)
        _fail(renderer, exc)
    _setup_logging(
        verbose,
        config.log_file,
        level=config.log_level,
        max_bytes=config.max_log_size,
        backup_count=config.max_log_files,
    )
    return config


def _fail(renderer: Renderer, exc: Exception) -> NoReturn:
    renderer.error(str(exc))
    raise typer.Exit(code=1)


def _run_check(updater: Updater, renderer: Renderer) -> CheckResult:
    if renderer.mode is not OutputMode.USER:
        return updater.check_sync()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Downloading documentation", total=None)

        def on_progress(update: DownloadProgress) -> None:
            description = f"Downloading {update.current}" if update.current else "Downloading documentation"
            progress.update(
                task,
                total=update.total,
                completed=update.completed + update.failed,
                description=description,
            )

        return updater.check_sync(on_progress)


VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@update_app.command("check")
def update_check(verbose: bool = VERBOSE_OPTION) -> None:
    """Download the latest documentation and stage any changes for review."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        result = _run_check(Updater(config), renderer)
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.check(result)


@update_app.command("commit")
def update_commit(
    message: str = typer.Argument(..., help="Changelog message describing the update"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Apply the pending changes and record them in the changelog."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        result = Updater(config).commit(message)
    except CommitError as exc:
        renderer.error(f"{exc} (pending changes kept)")
        raise typer.Exit(code=1)
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.commit(result)


@update_app.command("discard")
def update_discard(verbose: bool = VERBOSE_OPTION) -> None:
    """Throw away the pending changes."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        result = Updater(config).discard()
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.discard(result)


@update_app.command("status")
def update_status(verbose: bool = VERBOSE_OPTION) -> None:
    """Show installation state, pending changes and recent history."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        result = Updater(config).status()
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.status(result)


@app.command("list")
def list_command(
    document: Optional[str] = typer.Argument(None, help="Document whose sections to list"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List installed documents, or the sections of one document."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    store = CommittedStore(config.docs_dir)
    if document is None:
        renderer.documents([name.removesuffix(".md") for name in store.filenames()])
        return
    try:
        content = get_document(store, document)
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.sections(document.removesuffix(".md"), list_sections(content))


@app.command()
def get(
    target: str = typer.Argument(..., help="Document slug, optionally with #section"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Print a document or one of its sections."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        content = get_document(CommittedStore(config.docs_dir), target)
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.document(target, content)


@app.command()
def search(
    query: str = typer.Argument(..., help="Regular expression or literal text"),
    context: int = typer.Option(5, "--context", "-C", min=0, help="Lines of context around each match"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Match case exactly"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Search the installed documentation."""
    renderer = _renderer()
    config = _bootstrap(verbose, renderer)
    try:
        matches = search_documents(
            CommittedStore(config.docs_dir),
            query,
            context_lines=context,
            case_insensitive=not case_sensitive,
        )
    except DocshelfError as exc:
        _fail(renderer, exc)
    renderer.search(query, matches)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
