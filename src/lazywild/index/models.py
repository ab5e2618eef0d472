"""Data types shared by the line index engine."""

from __future__ import annotations

import sys
from array import array
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum


class IndexState(str, Enum):
    """Per-key registry state."""

    ABSENT = "absent"
    BUILDING = "building"
    READY = "ready"


class CacheStatus(str, Enum):
    """Outcome of a cache blob load."""

    LOADED = "loaded"
    MISS = "miss"
    CORRUPT = "corrupt"


class SelectionMode(str, Enum):
    """How the sampler picks line numbers.

    SEEDED maps the caller's seed onto a line number, so the same seed always
    selects the same line. RANDOM draws uniformly from the caller's RNG.
    """

    SEEDED = "seeded"
    RANDOM = "random"


def _frozen(values: Sequence[int] | array, typecode: str) -> memoryview:
    if not isinstance(values, array) or values.typecode != typecode:
        values = array(typecode, values)
    return memoryview(values).toreadonly()


@dataclass(frozen=True, slots=True)
class LineIndex:
    """Byte positions of the valid lines of one source file.

    Line number ``i`` is stored at ``offsets[i]`` with raw byte length
    ``lengths[i]`` (line terminator excluded). Both sequences are read-only
    views; an index is replaced as a whole, never updated in place.
    """

    key: str
    source_path: str
    fingerprint: str
    offsets: memoryview
    lengths: memoryview
    loaded_from_cache: bool = False

    @classmethod
    def create(
        cls,
        key: str,
        source_path: str,
        fingerprint: str,
        offsets: Sequence[int] | array,
        lengths: Sequence[int] | array,
        *,
        loaded_from_cache: bool = False,
    ) -> LineIndex:
        """Build an index, freezing the offset/length arrays."""
        frozen_offsets = _frozen(offsets, "q")
        frozen_lengths = _frozen(lengths, "i")
        if len(frozen_offsets) != len(frozen_lengths):
            raise ValueError(
                f"offsets/lengths size mismatch: {len(frozen_offsets)} != {len(frozen_lengths)}"
            )
        return cls(
            key=key,
            source_path=source_path,
            fingerprint=fingerprint,
            offsets=frozen_offsets,
            lengths=frozen_lengths,
            loaded_from_cache=loaded_from_cache,
        )

    @property
    def line_count(self) -> int:
        return len(self.offsets)

    def span(self, line_number: int) -> tuple[int, int] | None:
        """Return ``(offset, length)`` for a line, or None when out of range."""
        if 0 <= line_number < len(self.offsets):
            return self.offsets[line_number], self.lengths[line_number]
        return None

    def same_content(self, other: LineIndex) -> bool:
        """True when both indexes describe the same lines of the same file version."""
        return (
            self.fingerprint == other.fingerprint
            and self.offsets == other.offsets
            and self.lengths == other.lengths
        )


@dataclass(frozen=True, slots=True)
class CacheLoadResult:
    """Result of reading a cache blob. ``index`` is set only when LOADED."""

    status: CacheStatus
    index: LineIndex | None = None
    reason: str = ""

    @property
    def loaded(self) -> bool:
        return self.status is CacheStatus.LOADED


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """A datadump source file known under a wildcard name."""

    name: str
    key: str
    path: str
    fingerprint: str
    size_bytes: int


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of a placeholder synchronization pass."""

    found: int
    created: int
    skipped: int


@dataclass(frozen=True, slots=True)
class SampleRequest:
    """One sampling call: how many picks, how to join them, what to avoid."""

    count: int = 1
    separator: str = ", "
    exclude: frozenset[str] = field(default_factory=frozenset)
    mode: SelectionMode = SelectionMode.RANDOM
    seed: int = 0


def little_endian(values: memoryview, typecode: str) -> bytes:
    """Serialize an integer view as little-endian bytes."""
    data = array(typecode, values)
    if sys.byteorder == "big":
        data.byteswap()
    return data.tobytes()


def from_little_endian(raw: bytes, typecode: str) -> array:
    """Parse little-endian bytes into an integer array."""
    data = array(typecode)
    data.frombytes(raw)
    if sys.byteorder == "big":
        data.byteswap()
    return data
