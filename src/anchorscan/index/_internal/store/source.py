"""Read an entity's source text back from the audited tree."""

from __future__ import annotations

from pathlib import Path

from anchorscan.core.errors import SourceReadError
from anchorscan.index.models import SourceEntity


class SourceReader:
    """Line-cached file reader rooted at the repository root."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root
        self._lines: dict[str, list[str]] = {}

    def lines(self, path: str) -> list[str]:
        if path not in self._lines:
            try:
                text = (self.repo_root / path).read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise SourceReadError.unreadable(path, str(e)) from e
            self._lines[path] = text.split("\n")
        return self._lines[path]

    def content(self, entity: SourceEntity) -> str:
        """Verbatim text of the entity's line range."""
        return "\n".join(self.lines(entity.path)[entity.start_line - 1 : entity.end_line])

    def clear(self) -> None:
        self._lines.clear()
