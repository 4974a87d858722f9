"""CLI utilities."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import click

from anchorscan.config.constants import ANCHORSCAN_DIR
from anchorscan.core.errors import AnchorScanError

_WORKSPACE_MARKERS = ("Anchor.toml", ANCHORSCAN_DIR)


def find_repo_root(start_path: Path | None = None) -> Path:
    """Find the Anchor workspace root from the given path.

    Walks up the directory tree looking for Anchor.toml or .anchorscan/.
    If start_path is None, uses the current working directory.

    Raises:
        click.ClickException: If not inside an Anchor workspace
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in _WORKSPACE_MARKERS):
            return candidate

    raise click.ClickException(
        f"Not inside an Anchor workspace: {start_path}\n"
        "Run from a directory containing Anchor.toml, or run 'anchorscan init' first."
    )


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report anchorscan errors as click errors (exit code 1)."""
    try:
        yield
    except AnchorScanError as e:
        raise click.ClickException(str(e)) from e


def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums, tuples and frozensets to plain JSON values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, frozenset):
        return sorted(to_jsonable(v) for v in value)
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return value
