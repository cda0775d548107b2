"""On-disk store of committed documentation, one markdown file per document."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from docshelf.errors import DocshelfError
from docshelf.utils.files import ensure_dir, iter_markdown_paths, safe_read_file, safe_write_file


def check_filename(filename: str) -> str:
    """Reject names that would escape the store directory."""
    if not filename or "/" in filename or "\\" in filename or filename in {".", ".."}:
        raise DocshelfError(f"Invalid document filename: {filename!r}")
    return filename


class CommittedStore:
    """Persistence layer for the documentation currently considered live."""

    def __init__(self, docs_dir: Path) -> None:
        self.docs_dir = Path(docs_dir)

    def path_for(self, filename: str) -> Path:
        return self.docs_dir / check_filename(filename)

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def read(self, filename: str) -> Optional[str]:
        """Return the committed content, or None when the file is absent."""
        path = self.path_for(filename)
        if not path.is_file():
            return None
        return safe_read_file(path)

    def write(self, filename: str, content: str) -> None:
        ensure_dir(self.docs_dir)
        safe_write_file(self.path_for(filename), content)

    def delete(self, filename: str) -> None:
        path = self.path_for(filename)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise DocshelfError(f"Failed to delete {path}: {exc.strerror or exc}") from exc

    def filenames(self) -> List[str]:
        return [path.name for path in iter_markdown_paths(self.docs_dir)]

    def count(self) -> int:
        return len(self.filenames())

    def total_size(self) -> int:
        return sum(path.stat().st_size for path in iter_markdown_paths(self.docs_dir))
