"""Registry of built line indexes.

Per key the registry moves ABSENT -> BUILDING -> READY, and back to ABSENT on
invalidation. Concurrency rules:

- A READY index is returned without taking any lock.
- Building takes the key's build lock and re-checks before doing any work, so
  at most one cache load or scan per key runs at a time. Callers racing for
  the same key wait on that lock and receive the index the winner published.
- Build locks live in a fixed-size table indexed by a hash of the key. Memory
  stays bounded however many names come and go; two keys sharing a slot only
  build one after the other.
- reset() swaps in an empty map in one assignment. A build that started before
  the reset still returns its index to its own caller but does not publish it.
"""

from __future__ import annotations

import hashlib
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from lazywild.core.errors import WildcardIndexError
from lazywild.core.logging import get_logger
from lazywild.index.cache import cache_path_for, load_index, remove_cache, save_index
from lazywild.index.catalog import Catalog, fingerprint_from_stat, normalize_key
from lazywild.index.models import CatalogEntry, IndexState, LineIndex
from lazywild.index.scanner import ScanOptions, scan_lines

log = get_logger("index.registry")


class BuildLockTable:
    """Fixed pool of locks selected by key hash."""

    def __init__(self, shard_count: int = 64) -> None:
        self._shard_count = max(1, shard_count)
        self._locks = [threading.Lock() for _ in range(self._shard_count)]

    def _shard_index(self, key: str) -> int:
        digest = hashlib.sha1(key.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big") % self._shard_count

    def lock_for(self, key: str) -> threading.Lock:
        return self._locks[self._shard_index(key)]

    @property
    def shard_count(self) -> int:
        return self._shard_count


@dataclass(frozen=True, slots=True)
class _Slot:
    index: LineIndex
    # Catalog fingerprint the index was requested for; a rescan that reports a
    # different value makes the slot stale.
    catalog_fingerprint: str


class IndexRegistry:
    """Owns every LineIndex; the only place indexes are created or dropped."""

    def __init__(
        self,
        catalog: Catalog,
        cache_dir: str | Path | None,
        *,
        scan_options: ScanOptions | None = None,
        lock_shards: int = 64,
    ) -> None:
        self._catalog = catalog
        self._cache_dir = Path(cache_dir) if cache_dir is not None else None
        self._scan_options = scan_options or ScanOptions()
        self._locks = BuildLockTable(lock_shards)
        self._state_lock = threading.Lock()
        self._slots: dict[str, _Slot] = {}
        self._building: set[str] = set()
        self._generation = 0
        self._scan_count = 0
        self._open = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> IndexRegistry:
        self._open = True
        log.debug("registry_opened", cache_dir=str(self._cache_dir) if self._cache_dir else None)
        return self

    def close(self) -> None:
        self.reset()
        self._open = False
        log.debug("registry_closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> IndexRegistry:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._open:
            raise WildcardIndexError.registry_closed()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def scan_count(self) -> int:
        """Number of full file scans performed since construction."""
        return self._scan_count

    def cache_path(self, key: str) -> Path | None:
        if self._cache_dir is None:
            return None
        return cache_path_for(self._cache_dir, key)

    def peek(self, name: str) -> LineIndex | None:
        slot = self._slots.get(normalize_key(name))
        return slot.index if slot else None

    def state(self, name: str) -> IndexState:
        key = normalize_key(name)
        if key in self._slots:
            return IndexState.READY
        if key in self._building:
            return IndexState.BUILDING
        return IndexState.ABSENT

    def indexed_keys(self) -> list[str]:
        return sorted(self._slots)

    # ------------------------------------------------------------------
    # Get-or-build
    # ------------------------------------------------------------------

    def _ready(self, entry: CatalogEntry) -> LineIndex | None:
        slot = self._slots.get(entry.key)
        if slot is not None and slot.catalog_fingerprint == entry.fingerprint:
            return slot.index
        return None

    def get_index(self, name: str) -> LineIndex:
        """Return the index for ``name``, loading or building it if needed.

        Raises:
            WildcardIndexError: Unknown name, missing/unreadable source, or
                closed registry.
        """
        self._ensure_open()
        entry = self._catalog.resolve(name)
        if entry is None:
            raise WildcardIndexError.unknown_wildcard(name)

        index = self._ready(entry)
        if index is not None:
            return index

        with self._locks.lock_for(entry.key):
            index = self._ready(entry)
            if index is not None:
                return index
            return self._build(entry)

    def _build(self, entry: CatalogEntry) -> LineIndex:
        """Load from cache or scan. Caller holds the key's build lock."""
        try:
            st = os.stat(entry.path)
        except FileNotFoundError as e:
            raise WildcardIndexError.source_missing(entry.name, entry.path) from e
        except OSError as e:
            raise WildcardIndexError.source_unreadable(entry.path, str(e)) from e
        fingerprint = fingerprint_from_stat(st)

        with self._state_lock:
            generation = self._generation
            self._building.add(entry.key)

        log.info("index_build_started", name=entry.name, size_bytes=st.st_size)
        started = time.perf_counter()
        try:
            index = self._load_cached(entry, fingerprint)
            if index is None:
                scan = scan_lines(entry.path, self._scan_options)
                with self._state_lock:
                    self._scan_count += 1
                index = LineIndex.create(
                    entry.key,
                    entry.path,
                    fingerprint,
                    scan.offsets,
                    scan.lengths,
                )
                cache_path = self.cache_path(entry.key)
                if cache_path is not None:
                    save_index(index, cache_path)
        finally:
            with self._state_lock:
                self._building.discard(entry.key)

        with self._state_lock:
            if generation == self._generation:
                self._slots[entry.key] = _Slot(index, entry.fingerprint)

        log.info(
            "index_built",
            name=entry.name,
            lines=index.line_count,
            from_cache=index.loaded_from_cache,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return index

    def _load_cached(self, entry: CatalogEntry, fingerprint: str) -> LineIndex | None:
        cache_path = self.cache_path(entry.key)
        if cache_path is None:
            return None
        result = load_index(
            cache_path,
            key=entry.key,
            source_path=entry.path,
            expected_fingerprint=fingerprint,
        )
        return result.index if result.loaded else None

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, name: str) -> bool:
        """Drop the index for ``name`` and delete its cache file.

        Returns True when an in-memory index or a cache file was removed.
        """
        key = normalize_key(name)
        with self._locks.lock_for(key):
            with self._state_lock:
                dropped = self._slots.pop(key, None) is not None
            cache_path = self.cache_path(key)
            removed = remove_cache(cache_path) if cache_path is not None else False
        if dropped or removed:
            log.info("index_invalidated", name=name, dropped=dropped, cache_removed=removed)
        return dropped or removed

    def reset(self) -> None:
        """Forget every in-memory index. Cache files are kept."""
        with self._state_lock:
            self._slots = {}
            self._generation += 1
        log.debug("registry_reset", generation=self._generation)
