"""Terminal feedback for the anchorscan CLI.

Everything here writes to stderr through one Rich console so that
``--json`` output on stdout stays machine readable. While a live display
(bar or spinner) owns the terminal, console log records are held back;
file outputs still receive them.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TypeVar

import structlog
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

# Iterables at or below this size never get a bar
_PROGRESS_THRESHOLD = 100

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_live = threading.local()

T = TypeVar("T")

log = structlog.get_logger(__name__)


def is_console_suppressed() -> bool:
    return getattr(_live, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Hold back console log records while the block runs."""
    previous = is_console_suppressed()
    _live.active = True
    try:
        yield
    finally:
        _live.active = previous


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one styled line to stderr."""
    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    log.debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def progress(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
    unit: str = "files",
    force: bool = False,
) -> Iterator[T]:
    """Yield from ``iterable``, drawing a bar on a TTY for large inputs.

    The bar appears when stderr is a terminal and the known total exceeds
    ``_PROGRESS_THRESHOLD`` (or ``force`` is set). Otherwise items pass
    straight through and only debug events are logged.
    """
    if total is None and hasattr(iterable, "__len__"):
        total = len(iterable)  # type: ignore[arg-type]

    if not (_is_tty() and total is not None and (force or total > _PROGRESS_THRESHOLD)):
        if desc and total:
            log.debug("progress_start", desc=desc, total=total)
        yield from iterable
        if desc and total:
            log.debug("progress_done", desc=desc, total=total)
        return

    columns = (
        TextColumn("    {task.description}:"),
        BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
        TaskProgressColumn(),
        TextColumn("{task.completed}/{task.total} {task.fields[unit]}"),
    )
    with suppress_console_logs(), Progress(*columns, console=_console, transient=True) as bar:
        bar_task = bar.add_task(desc or "Working", total=total, unit=unit)
        for item in iterable:
            yield item
            bar.advance(bar_task)


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Spin while the block runs; print the message once when not on a TTY."""
    text = f"{' ' * indent}{message}"
    if not _is_tty():
        _console.print(f"{text}...")
        yield
        return
    with suppress_console_logs(), _console.status(f"[cyan]{text}[/cyan]", spinner="dots"):
        yield


@contextmanager
def task(name: str) -> Iterator[None]:
    """Announce a named step and report its duration or failure.

    Usage::

        with task("Scanning program"):
            coordinator.scan()
        # ✓ Scanning program (0.4s)
    """
    status(f"{name}...", style="none")
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - started
        status(f"{name} failed: {e}", style="error")
        log.error("task_failed", task=name, elapsed_s=elapsed, error=str(e))
        raise
    elapsed = time.perf_counter() - started
    status(f"{name} ({elapsed:.1f}s)", style="success")
    log.debug("task_done", task=name, elapsed_s=elapsed)
