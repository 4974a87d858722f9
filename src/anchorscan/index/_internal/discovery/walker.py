"""Collect program source files for scanning."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from anchorscan.core.excludes import is_prunable

log = structlog.get_logger(__name__)


@dataclass
class SourceFile:
    """One file handed to the scanners. ``path`` is repo-relative POSIX."""

    path: str
    text: str

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")


@dataclass
class WalkResult:
    files: list[SourceFile] = field(default_factory=list)
    skipped_large: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _walk_with_pruning(root: Path) -> list[Path]:
    """Walk all files under root, skipping prunable directories. Sorted for stable output."""
    results: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not is_prunable(d))
        for filename in sorted(filenames):
            results.append(Path(dirpath) / filename)
    return results


def collect_sources(
    repo_root: Path,
    program_dir: str,
    *,
    extensions: list[str],
    max_file_size_mb: int,
) -> WalkResult:
    """Read every matching file under ``repo_root / program_dir``."""
    result = WalkResult()
    root = repo_root / program_dir
    if not root.is_dir():
        log.warning("program_dir_missing", program_dir=program_dir)
        return result

    max_bytes = max_file_size_mb * 1024 * 1024
    suffixes = {ext.lower() for ext in extensions}
    for path in _walk_with_pruning(root):
        if path.suffix.lower() not in suffixes:
            continue
        rel_path = path.relative_to(repo_root).as_posix()
        try:
            if path.stat().st_size > max_bytes:
                result.skipped_large.append(rel_path)
                log.info("file_skipped_large", path=rel_path)
                continue
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            result.errors.append(f"{rel_path}: {e}")
            log.warning("file_read_failed", path=rel_path, error=str(e))
            continue
        result.files.append(SourceFile(path=rel_path, text=text))

    log.debug("sources_collected", count=len(result.files), program_dir=program_dir)
    return result
