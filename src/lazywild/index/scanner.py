"""Single-pass line scanner for wildcard source files.

Produces the byte offset and raw length of every valid line in a file. A line
ends at ``\\n``, ``\\r`` or ``\\r\\n``. A line is valid when the text before its
first ``#``, trimmed of ASCII whitespace, is non-empty. These are the same rules
the in-memory wildcard loader applies, so line ``i`` of the index is line ``i``
of the loader's list.

Files up to ``whole_file_max_bytes`` are read in one call; larger files are
streamed in ``chunk_size`` reads. Both paths feed the same splitter, and the
splitter keeps enough state between chunks (a partial line, a trailing ``\\r``)
that results never depend on where chunk boundaries fall.
"""

from __future__ import annotations

from array import array
from dataclasses import dataclass
from pathlib import Path

from lazywild.core.errors import WildcardIndexError

UTF8_BOM = b"\xef\xbb\xbf"

# ASCII whitespace, matching bytes.strip() without arguments
WHITESPACE = " \t\n\r\x0b\x0c"
_WHITESPACE_BYTES = WHITESPACE.encode("ascii")

DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_WHOLE_FILE_MAX_BYTES = 8 * 1024 * 1024


def is_valid_line(raw: bytes) -> bool:
    """True when the line keeps some content after comment stripping and trimming.

    Works on raw bytes: ``#`` and ASCII whitespace never occur inside a UTF-8
    multi-byte sequence, so this agrees with the decoded-text rule.
    """
    return bool(raw.split(b"#", 1)[0].strip(_WHITESPACE_BYTES))


def clean_line(text: str) -> str:
    """Strip the comment part of a decoded line and trim it."""
    return text.split("#", 1)[0].strip(WHITESPACE)


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Tuning for scan_lines(); results do not depend on these values."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    whole_file_max_bytes: int = DEFAULT_WHOLE_FILE_MAX_BYTES


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Offsets and lengths of the valid lines of one file, in file order."""

    offsets: array
    lengths: array
    bom: bool
    bytes_scanned: int

    @property
    def line_count(self) -> int:
        return len(self.offsets)


class LineSplitter:
    """Incremental line splitter fed with consecutive chunks of one file.

    ``start`` is the absolute offset of the first byte that will be fed, so
    recorded offsets are file offsets even when a BOM was skipped.
    """

    def __init__(self, start: int = 0) -> None:
        self.offsets = array("q")
        self.lengths = array("i")
        self._position = start
        self._carry = bytearray()
        self._carry_start = start
        self._pending_cr = False

    def feed(self, chunk: bytes) -> None:
        if not chunk:
            return
        if self._pending_cr:
            # "\r" closed the previous chunk; a leading "\n" completes "\r\n"
            self._pending_cr = False
            if chunk[0] == 0x0A:
                chunk = chunk[1:]
                self._position += 1
                if not chunk:
                    return

        # bytes.splitlines() splits on \n, \r and \r\n only
        for piece in chunk.splitlines(keepends=True):
            size = len(piece)
            if piece.endswith(b"\r\n"):
                body_len = size - 2
            elif piece[-1] in (0x0A, 0x0D):
                body_len = size - 1
            else:
                # Unterminated tail of this chunk; continues in the next one
                if not self._carry:
                    self._carry_start = self._position
                self._carry += piece
                self._position += size
                continue

            if self._carry:
                self._carry += piece[:body_len]
                self._emit(self._carry_start, bytes(self._carry))
                self._carry.clear()
            else:
                self._emit(self._position, piece[:body_len])
            self._position += size

        self._pending_cr = chunk[-1] == 0x0D

    def finish(self) -> None:
        """Flush a final line that has no terminator."""
        if self._carry:
            self._emit(self._carry_start, bytes(self._carry))
            self._carry.clear()
        self._pending_cr = False

    def _emit(self, start: int, body: bytes) -> None:
        if body and is_valid_line(body):
            self.offsets.append(start)
            self.lengths.append(len(body))


def scan_lines(path: str | Path, options: ScanOptions | None = None) -> ScanResult:
    """Scan ``path`` once and return the positions of its valid lines.

    Raises:
        WildcardIndexError: If the file is missing or cannot be read.
    """
    options = options or ScanOptions()
    path = Path(path)
    try:
        size = path.stat().st_size
        with path.open("rb") as f:
            head = f.read(len(UTF8_BOM))
            bom = head == UTF8_BOM
            start = len(UTF8_BOM) if bom else 0
            splitter = LineSplitter(start)
            if not bom:
                splitter.feed(head)

            if size <= options.whole_file_max_bytes:
                splitter.feed(f.read())
            else:
                while chunk := f.read(options.chunk_size):
                    splitter.feed(chunk)
            splitter.finish()
    except FileNotFoundError as e:
        raise WildcardIndexError.source_missing(path.stem, str(path)) from e
    except OSError as e:
        raise WildcardIndexError.source_unreadable(str(path), str(e)) from e

    return ScanResult(
        offsets=splitter.offsets,
        lengths=splitter.lengths,
        bom=bom,
        bytes_scanned=size,
    )


def parse_valid_lines(data: bytes) -> list[str]:
    """Valid lines of an in-memory file, cleaned, in file order.

    This is the small-file loader path: the whole content is split at once.
    It yields the same lines, in the same order, as scan_lines() followed by
    reading every indexed line.
    """
    if data.startswith(UTF8_BOM):
        data = data[len(UTF8_BOM) :]
    lines = []
    for raw in data.splitlines():
        if is_valid_line(raw):
            lines.append(clean_line(raw.decode("utf-8", errors="replace")))
    return lines
