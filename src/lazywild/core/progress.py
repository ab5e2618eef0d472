"""User-facing feedback for CLI operations, rendered with rich on stderr.

- One status line per event, no spam
- Indexing progress is measured in bytes: one large datadump file dominates
  the wall time, so counting files would stall the bar
- Plain lines instead of live displays when stderr is not a TTY (CI, pipes)
- Console log records are held back while a live display is running

Usage::

    from lazywild.core.progress import progress, spinner, status

    for entry in progress(entries, desc="Indexing", size=lambda e: e.size_bytes):
        registry.get_index(entry.name)

    with spinner("Indexing people (212.0 MB)"):
        registry.get_index("people")

    status("Indexed 12 wildcards", style="success")
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

T = TypeVar("T")

# Minimum number of items before a bar is worth showing
_PROGRESS_THRESHOLD = 10

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_live_display = threading.local()


def is_console_suppressed() -> bool:
    """True while a spinner or progress bar owns the terminal on this thread."""
    return getattr(_live_display, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Hold back console log records for the duration of a live display."""
    previous = is_console_suppressed()
    _live_display.active = True
    try:
        yield
    finally:
        _live_display.active = previous


def _log() -> BoundLogger:
    from lazywild.core.logging import get_logger

    return get_logger("progress")


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    """Shared stderr console."""
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one styled status line."""
    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    _log().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 line" / "3 lines" style counts."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def format_bytes(size: int) -> str:
    """Render a byte count with a binary unit suffix."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            break
    return f"{value:.1f} {unit}"


def progress(
    items: Sequence[T],
    *,
    desc: str = "Processing",
    size: Callable[[T], int] | None = None,
    force: bool = False,
) -> Iterator[T]:
    """Yield ``items`` while showing a bar on a TTY.

    Args:
        items: Work items, consumed in order.
        desc: Label in front of the bar.
        size: Byte weight of an item. The bar advances by this amount once
            the item's work is done. Each item weighs 1 when omitted.
        force: Show the bar even for fewer than ten items.
    """
    weigh = size or (lambda _: 1)
    show_bar = _is_tty() and (force or len(items) >= _PROGRESS_THRESHOLD)

    if not show_bar:
        _log().debug("progress_start", desc=desc, items=len(items))
        yield from items
        _log().debug("progress_done", desc=desc, items=len(items))
        return

    columns = [
        TextColumn("    {task.description}:"),
        BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
        DownloadColumn() if size else TextColumn("{task.completed}/{task.total}"),
        TimeRemainingColumn(),
    ]
    with (
        suppress_console_logs(),
        Progress(*columns, console=_console, transient=True) as bar,
    ):
        task_id = bar.add_task(desc, total=sum(weigh(item) for item in items))
        for item in items:
            yield item
            bar.advance(task_id, weigh(item))


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Spinner while one long operation runs; a plain line when not a TTY.

    Inside a running progress bar it does nothing: rich drives one live
    display at a time.
    """
    padding = " " * indent
    if is_console_suppressed():
        yield
        return
    if not _is_tty():
        _console.print(f"{padding}{message}...", highlight=False)
        yield
        return
    with (
        suppress_console_logs(),
        _console.status(f"{padding}[cyan]{message}[/cyan]", spinner="dots"),
    ):
        yield
