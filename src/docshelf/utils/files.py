"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Iterator

from docshelf.errors import DocshelfError


def iter_markdown_paths(root: Path) -> Iterator[Path]:
    """Yield markdown files directly under ``root``, sorted by name."""
    if not root.is_dir():
        return
    for child in sorted(root.iterdir()):
        if child.is_file() and child.suffix.lower() == ".md":
            yield child


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DocshelfError(f"Failed to create directory {path}: {exc.strerror or exc}") from exc
    return path


def safe_read_file(path: Path) -> str:
    """Read a UTF-8 file, translating OS errors into readable messages."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DocshelfError(f"File not found: {path}") from exc
    except PermissionError as exc:
        raise DocshelfError(f"Permission denied reading file: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise DocshelfError(f"Failed to read file {path}: {exc}") from exc


def safe_write_file(path: Path, content: str) -> None:
    """Atomically write a UTF-8 file, creating parent directories."""
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", delete=False, dir=str(path.parent), prefix=f".{path.name}."
        ) as tmp:
            tmp.write(content)
            tmp.flush()
            tmp_path = Path(tmp.name)
        os.replace(tmp_path, path)
    except PermissionError as exc:
        _cleanup(tmp_path)
        raise DocshelfError(f"Permission denied writing file: {path}") from exc
    except OSError as exc:
        _cleanup(tmp_path)
        raise DocshelfError(f"Failed to write file {path}: {exc.strerror or exc}") from exc


def _cleanup(path: Path | None) -> None:
    if path is not None:
        path.unlink(missing_ok=True)


def format_bytes(size: int) -> str:
    """Human readable size, e.g. ``2.3 MB``."""
    if size <= 0:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
