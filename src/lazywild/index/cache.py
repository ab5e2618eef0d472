"""Binary on-disk cache for line indexes.

Blob layout (all integers little-endian)::

    magic        4 bytes   b"LWIX"
    version      1 byte    CACHE_VERSION
    fingerprint  varint length (7 bits per byte, low bits first) + UTF-8 bytes
    count        int32     number of lines, 0..MAX_LINE_COUNT
    offsets      count x int64
    lengths      count x int32

Loading never trusts part of a blob. Anything structurally wrong is CORRUPT,
a blob for another version or another file state is a MISS. Saving never
raises: a failed write only costs the next process a rescan.
"""

from __future__ import annotations

import hashlib
import os
import struct
import tempfile
from pathlib import Path

from lazywild.config.constants import (
    CACHE_MAGIC,
    CACHE_SUFFIX,
    CACHE_VERSION,
    MAX_FINGERPRINT_BYTES,
    MAX_LINE_COUNT,
)
from lazywild.core.logging import get_logger
from lazywild.index.models import (
    CacheLoadResult,
    CacheStatus,
    LineIndex,
    from_little_endian,
    little_endian,
)

log = get_logger("index.cache")

_COUNT = struct.Struct("<i")
_OFFSET_SIZE = 8
_LENGTH_SIZE = 4


class _Truncated(Exception):
    pass


def cache_path_for(cache_dir: str | Path, key: str) -> Path:
    """Cache blob location for a registry key."""
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:24]
    return Path(cache_dir) / f"{digest}{CACHE_SUFFIX}"


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _decode_varint(data: bytes, pos: int) -> tuple[int, int]:
    value = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise _Truncated
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, pos
        shift += 7
        if shift > 28:
            raise ValueError("varint too long")


def encode_index(index: LineIndex) -> bytes:
    """Serialize an index to the blob layout."""
    fingerprint = index.fingerprint.encode("utf-8")
    return b"".join(
        (
            CACHE_MAGIC,
            bytes((CACHE_VERSION,)),
            _encode_varint(len(fingerprint)),
            fingerprint,
            _COUNT.pack(index.line_count),
            little_endian(index.offsets, "q"),
            little_endian(index.lengths, "i"),
        )
    )


def decode_index(
    data: bytes,
    *,
    key: str,
    source_path: str,
    expected_fingerprint: str,
) -> CacheLoadResult:
    """Parse a blob, checking it against the fingerprint the caller expects."""
    if len(data) < len(CACHE_MAGIC) + 1:
        return CacheLoadResult(CacheStatus.CORRUPT, reason="truncated header")
    if data[: len(CACHE_MAGIC)] != CACHE_MAGIC:
        return CacheLoadResult(CacheStatus.CORRUPT, reason="bad magic")
    pos = len(CACHE_MAGIC)
    version = data[pos]
    pos += 1
    if version != CACHE_VERSION:
        return CacheLoadResult(CacheStatus.MISS, reason=f"version {version}")

    try:
        fp_len, pos = _decode_varint(data, pos)
        if fp_len > MAX_FINGERPRINT_BYTES:
            return CacheLoadResult(CacheStatus.CORRUPT, reason="fingerprint too long")
        if pos + fp_len + _COUNT.size > len(data):
            raise _Truncated
        stored = data[pos : pos + fp_len].decode("utf-8")
        pos += fp_len
        (count,) = _COUNT.unpack_from(data, pos)
        pos += _COUNT.size
    except _Truncated:
        return CacheLoadResult(CacheStatus.CORRUPT, reason="truncated header")
    except (ValueError, UnicodeDecodeError) as e:
        return CacheLoadResult(CacheStatus.CORRUPT, reason=str(e))

    if stored != expected_fingerprint:
        return CacheLoadResult(CacheStatus.MISS, reason="stale fingerprint")
    if count < 0 or count > MAX_LINE_COUNT:
        return CacheLoadResult(CacheStatus.CORRUPT, reason=f"line count {count}")

    offsets_end = pos + count * _OFFSET_SIZE
    lengths_end = offsets_end + count * _LENGTH_SIZE
    if lengths_end != len(data):
        return CacheLoadResult(
            CacheStatus.CORRUPT,
            reason=f"size mismatch: expected {lengths_end} bytes, found {len(data)}",
        )

    offsets = from_little_endian(data[pos:offsets_end], "q")
    lengths = from_little_endian(data[offsets_end:lengths_end], "i")
    index = LineIndex.create(
        key,
        source_path,
        stored,
        offsets,
        lengths,
        loaded_from_cache=True,
    )
    return CacheLoadResult(CacheStatus.LOADED, index=index)


def load_index(
    path: str | Path,
    *,
    key: str,
    source_path: str,
    expected_fingerprint: str,
) -> CacheLoadResult:
    """Load a cached index. Never raises; see CacheLoadResult for outcomes."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return CacheLoadResult(CacheStatus.MISS, reason="no cache file")
    except OSError as e:
        log.warning("cache_read_failed", path=str(path), error=str(e))
        return CacheLoadResult(CacheStatus.CORRUPT, reason=str(e))

    result = decode_index(
        data,
        key=key,
        source_path=source_path,
        expected_fingerprint=expected_fingerprint,
    )
    if result.status is CacheStatus.CORRUPT:
        log.warning("cache_corrupt", path=str(path), key=key, reason=result.reason)
    else:
        log.debug("cache_load", path=str(path), key=key, status=result.status.value)
    return result


def save_index(index: LineIndex, path: str | Path) -> bool:
    """Write an index blob atomically. Returns False (and logs) on failure."""
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(encode_index(index))
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        log.warning("cache_write_failed", path=str(path), key=index.key, error=str(e))
        return False
    finally:
        if tmp_name is not None:
            _unlink_quietly(Path(tmp_name))
    log.debug("cache_saved", path=str(path), key=index.key, lines=index.line_count)
    return True


def remove_cache(path: str | Path) -> bool:
    """Delete a cache blob. Returns True when a file was removed."""
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        log.warning("cache_remove_failed", path=str(path), error=str(e))
        return False
    return True


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        log.debug("temp_cleanup_failed", path=str(path))
