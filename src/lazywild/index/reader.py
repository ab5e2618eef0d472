"""Materialize indexed lines from disk.

Every read opens the source, seeks to the recorded offset and reads exactly the
recorded length, then applies the same comment/trim rule the scanner used. No
file handle outlives a call.

With ``cache_content=True`` all lines are read once, on first use, and then
served from memory. That is the mode for files below the large-file threshold.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from lazywild.core.logging import get_logger
from lazywild.index.models import LineIndex
from lazywild.index.scanner import clean_line

log = get_logger("index.reader")

_READ_BUFFER = 64 * 1024


def _decode(raw: bytes) -> str:
    return clean_line(raw.decode("utf-8", errors="replace").rstrip("\r\n"))


class LineReader:
    """Reads lines of one LineIndex by line number."""

    def __init__(self, index: LineIndex, *, cache_content: bool = False) -> None:
        self._index = index
        self._cache_content = cache_content
        self._content: tuple[str, ...] | None = None
        self._content_lock = threading.Lock()

    @property
    def index(self) -> LineIndex:
        return self._index

    @property
    def line_count(self) -> int:
        return self._index.line_count

    @property
    def cache_content(self) -> bool:
        return self._cache_content

    def read(self, line_number: int) -> str:
        """Return one cleaned line; "" when out of range or unreadable."""
        if self._cache_content:
            content = self._materialize()
            if 0 <= line_number < len(content):
                return content[line_number]
            return ""

        span = self._index.span(line_number)
        if span is None:
            return ""
        offset, length = span
        try:
            with open(self._index.source_path, "rb") as f:
                f.seek(offset)
                raw = f.read(length)
        except OSError as e:
            log.warning(
                "line_read_failed",
                key=self._index.key,
                path=self._index.source_path,
                line=line_number,
                error=str(e),
            )
            return ""
        if not raw:
            return ""
        return _decode(raw)

    def read_many(self, line_numbers: Sequence[int]) -> list[str]:
        """Return cleaned lines in the order requested.

        The reads themselves run in offset order through a single handle.
        """
        if self._cache_content:
            content = self._materialize()
            return [content[n] if 0 <= n < len(content) else "" for n in line_numbers]
        results, _ = self._read_batch(line_numbers)
        return results

    def _read_batch(self, line_numbers: Sequence[int]) -> tuple[list[str], bool]:
        """Read lines sorted by offset; the flag is False when the file could not be read."""
        results = [""] * len(line_numbers)
        spans: list[tuple[int, int, int]] = []
        for position, line_number in enumerate(line_numbers):
            span = self._index.span(line_number)
            if span is not None:
                spans.append((span[0], span[1], position))
        if not spans:
            return results, True
        spans.sort()

        try:
            with open(self._index.source_path, "rb", buffering=_READ_BUFFER) as f:
                for offset, length, position in spans:
                    f.seek(offset)
                    raw = f.read(length)
                    if raw:
                        results[position] = _decode(raw)
        except OSError as e:
            log.warning(
                "batch_read_failed",
                key=self._index.key,
                path=self._index.source_path,
                requested=len(line_numbers),
                error=str(e),
            )
            return [""] * len(line_numbers), False
        return results, True

    def _materialize(self) -> tuple[str, ...]:
        content = self._content
        if content is not None:
            return content
        with self._content_lock:
            if self._content is not None:
                return self._content
            lines, ok = self._read_batch(range(self._index.line_count))
            if not ok:
                # Not kept, so a later call retries the read
                return tuple(lines)
            self._content = tuple(lines)
            log.debug("content_cached", key=self._index.key, lines=len(lines))
            return self._content
