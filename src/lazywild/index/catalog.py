"""Catalog of datadump source files.

Maps wildcard names to the ``*.txt`` files under the datadump folder. A name is
the file's path relative to the folder, with ``/`` separators and without the
suffix; lookups are case-insensitive.

The host only offers wildcards it finds in its own wildcard folder, so each
datadump file gets a tiny placeholder there. Placeholders are created, never
overwritten; a placeholder the user replaced with real content is reported by
modified_placeholders().
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from lazywild.config.constants import (
    PLACEHOLDER_CONTENT,
    PLACEHOLDER_MAX_BYTES,
    PLACEHOLDER_TEXT,
    SOURCE_SUFFIX,
)
from lazywild.core.logging import get_logger
from lazywild.index.models import CatalogEntry, SyncResult

log = get_logger("index.catalog")


def normalize_key(name: str) -> str:
    """Registry/catalog key for a wildcard name."""
    return name.replace("\\", "/").strip("/").casefold()


def fingerprint_from_stat(st: os.stat_result) -> str:
    return f"{st.st_size}:{st.st_mtime_ns}"


def compute_fingerprint(path: str | Path) -> str:
    """Cheap identity of a file version (size and mtime); "" when unreadable."""
    try:
        return fingerprint_from_stat(os.stat(path))
    except OSError:
        return ""


def is_large_file(size_bytes: int, threshold_bytes: int) -> bool:
    """True when a file of ``size_bytes`` should be indexed and read lazily."""
    if threshold_bytes <= 0:
        return False
    return size_bytes >= threshold_bytes


def is_placeholder(path: str | Path) -> bool:
    """True when ``path`` holds nothing but the placeholder comment."""
    path = Path(path)
    try:
        if not path.is_file() or path.stat().st_size > PLACEHOLDER_MAX_BYTES:
            return False
        content = path.read_text(encoding="utf-8-sig").strip()
    except (OSError, UnicodeDecodeError):
        return False
    return content == PLACEHOLDER_TEXT


class Catalog:
    """Name → source file mapping for one datadump folder."""

    def __init__(self, source_dir: str | Path | None) -> None:
        self._source_dir = Path(source_dir).expanduser() if source_dir else None
        self._entries: dict[str, CatalogEntry] = {}
        self._scan_lock = threading.Lock()

    @property
    def source_dir(self) -> Path | None:
        return self._source_dir

    def scan(self) -> int:
        """Enumerate the datadump folder. Returns the number of entries found."""
        with self._scan_lock:
            entries: dict[str, CatalogEntry] = {}
            root = self._source_dir
            if root is None:
                self._entries = entries
                return 0
            if not root.is_dir():
                log.warning("datadump_dir_missing", path=str(root))
                self._entries = entries
                return 0

            for path in sorted(root.rglob(f"*{SOURCE_SUFFIX}")):
                try:
                    st = path.stat()
                except OSError as e:
                    log.warning("datadump_stat_failed", path=str(path), error=str(e))
                    continue
                if not path.is_file():
                    continue
                name = path.relative_to(root).with_suffix("").as_posix()
                key = normalize_key(name)
                entries[key] = CatalogEntry(
                    name=name,
                    key=key,
                    path=str(path.resolve()),
                    fingerprint=fingerprint_from_stat(st),
                    size_bytes=st.st_size,
                )

            # Replace in one step; concurrent resolve() sees old or new map
            self._entries = entries
            log.debug("catalog_scanned", path=str(root), entries=len(entries))
            return len(entries)

    def resolve(self, name: str) -> CatalogEntry | None:
        return self._entries.get(normalize_key(name))

    def contains(self, name: str) -> bool:
        return normalize_key(name) in self._entries

    def entries(self) -> list[CatalogEntry]:
        return sorted(self._entries.values(), key=lambda e: e.key)

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def sync_placeholders(self, wildcard_dir: str | Path) -> SyncResult:
        """Create a placeholder in ``wildcard_dir`` for every entry lacking a file."""
        wildcard_dir = Path(wildcard_dir).expanduser()
        wildcard_dir.mkdir(parents=True, exist_ok=True)
        created = 0
        skipped = 0
        entries = self.entries()
        for entry in entries:
            placeholder = wildcard_dir / f"{entry.name}{SOURCE_SUFFIX}"
            if placeholder.exists():
                skipped += 1
                continue
            placeholder.parent.mkdir(parents=True, exist_ok=True)
            placeholder.write_text(PLACEHOLDER_CONTENT, encoding="utf-8")
            created += 1
            log.debug("placeholder_created", name=entry.name, path=str(placeholder))

        result = SyncResult(found=len(entries), created=created, skipped=skipped)
        if entries:
            log.info(
                "placeholders_synced",
                found=result.found,
                created=result.created,
                skipped=result.skipped,
            )
        return result

    def modified_placeholders(self, wildcard_dir: str | Path) -> list[str]:
        """Names whose placeholder now holds user content instead of the marker."""
        wildcard_dir = Path(wildcard_dir).expanduser()
        modified = []
        for entry in self.entries():
            placeholder = wildcard_dir / f"{entry.name}{SOURCE_SUFFIX}"
            if placeholder.exists() and not is_placeholder(placeholder):
                modified.append(entry.name)
        return modified
