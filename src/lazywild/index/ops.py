"""High-level entry point for datadump wildcards.

WildcardService owns the component lifecycles and the request pipeline:
Catalog (name -> file) -> IndexRegistry (get-or-build) -> LineReader -> sampler.

The host's prompt engine calls process() for every wildcard tag. A ``None``
result means the name is not served from the datadump folder and the host
should fall back to its normal wildcard loader.
"""

from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from lazywild.config.loader import get_cache_dir
from lazywild.config.models import LazyWildConfig
from lazywild.core.errors import WildcardIndexError
from lazywild.core.logging import get_logger
from lazywild.index.catalog import Catalog, is_large_file, normalize_key
from lazywild.index.models import CatalogEntry, LineIndex, SampleRequest, SelectionMode
from lazywild.index.reader import LineReader
from lazywild.index.registry import IndexRegistry
from lazywild.index.sampler import ParseFn, sample
from lazywild.index.scanner import ScanOptions

log = get_logger("index.ops")

_EXCLUDE_PREFIX = "not="


@dataclass(frozen=True, slots=True)
class WildcardDirective:
    """Parsed wildcard tag data: ``name`` or ``name,not=a,b``."""

    name: str
    exclude: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class RefreshResult:
    """Outcome of a manual refresh."""

    success: bool
    file_count: int = 0
    message: str | None = None
    error: str | None = None
    placeholders_created: int = 0
    duration_ms: int = 0


def parse_directive(data: str) -> WildcardDirective:
    """Split tag data into the wildcard name and its exclusion set.

    Everything after ``not=`` is a comma-separated list of values that must not
    be picked.
    """
    name, _, rest = data.partition(",")
    exclude: frozenset[str] = frozenset()
    rest = rest.strip()
    if rest.startswith(_EXCLUDE_PREFIX):
        values = rest[len(_EXCLUDE_PREFIX) :].split(",")
        exclude = frozenset(v.strip() for v in values if v.strip())
    return WildcardDirective(name=name.strip(), exclude=exclude)


class WildcardService:
    """Datadump wildcard facade: catalog, index registry, readers and sampling."""

    def __init__(self, config: LazyWildConfig, *, root: Path | None = None) -> None:
        self._config = config
        self._catalog = Catalog(config.datadump.folder)
        self._registry = IndexRegistry(
            self._catalog,
            get_cache_dir(config, root),
            scan_options=ScanOptions(
                chunk_size=config.index.scan_chunk_bytes,
                whole_file_max_bytes=config.index.whole_file_max_bytes,
            ),
            lock_shards=config.index.lock_shards,
        )
        self._readers: dict[str, LineReader] = {}
        self._readers_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> WildcardService:
        self._registry.open()
        if self.is_active:
            self._catalog.scan()
            try:
                self._sync_placeholders()
            except OSError as e:
                log.error(
                    "placeholder_sync_failed",
                    wildcard_dir=self._config.datadump.wildcard_dir,
                    error=str(e),
                )
        log.info(
            "wildcard_service_opened",
            active=self.is_active,
            datadump_files=len(self._catalog),
            threshold_mb=self._config.datadump.large_file_threshold_mb,
        )
        return self

    def close(self) -> None:
        with self._readers_lock:
            self._readers = {}
        self._registry.close()
        log.info("wildcard_service_closed")

    def __enter__(self) -> WildcardService:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> LazyWildConfig:
        return self._config

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def registry(self) -> IndexRegistry:
        return self._registry

    @property
    def is_active(self) -> bool:
        return self._config.datadump.is_active

    def is_datadump(self, name: str) -> bool:
        return self.is_active and self._catalog.contains(name)

    def resolve(self, name: str) -> CatalogEntry | None:
        if not self.is_active:
            return None
        return self._catalog.resolve(name)

    # ------------------------------------------------------------------
    # Index access
    # ------------------------------------------------------------------

    def get_index(self, name: str) -> LineIndex:
        return self._registry.get_index(name)

    def invalidate(self, name: str) -> bool:
        with self._readers_lock:
            self._readers.pop(normalize_key(name), None)
        return self._registry.invalidate(name)

    def reader(self, name: str) -> LineReader:
        """Line reader for ``name``; small files keep their lines in memory."""
        index = self._registry.get_index(name)
        with self._readers_lock:
            reader = self._readers.get(index.key)
            if reader is None or reader.index is not index:
                entry = self._catalog.resolve(name)
                size = entry.size_bytes if entry else 0
                lazy = is_large_file(size, self._config.datadump.large_file_threshold_bytes)
                reader = LineReader(index, cache_content=not lazy)
                self._readers[index.key] = reader
        return reader

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def sample(
        self,
        name: str,
        request: SampleRequest,
        *,
        parse: ParseFn | None = None,
        rng: random.Random | None = None,
    ) -> str:
        """Sample lines of a datadump wildcard.

        Raises:
            WildcardIndexError: When no index can be produced for ``name``.
        """
        return sample(
            self.reader(name),
            request,
            parse=parse,
            rng=rng,
            max_attempts=self._config.sampling.max_attempts,
        )

    def process(
        self,
        data: str,
        *,
        count: int = 1,
        separator: str | None = None,
        mode: SelectionMode = SelectionMode.RANDOM,
        seed: int = 0,
        rng: random.Random | None = None,
        parse: ParseFn | None = None,
        used_wildcards: list[str] | None = None,
    ) -> str | None:
        """Handle one wildcard tag.

        Args:
            data: Tag data, ``name`` or ``name,not=a,b``.
            count: Number of picks requested by the host.
            separator: Joins the picks; config default when None.
            mode: SEEDED reuses ``seed``; RANDOM draws from ``rng``.
            used_wildcards: If given, the resolved wildcard name is appended.

        Returns:
            The sampled text, "" for an empty source, or None when ``data``
            does not name a datadump wildcard.
        """
        directive = parse_directive(data)
        entry = self.resolve(directive.name)
        if entry is None:
            return None
        if used_wildcards is not None:
            used_wildcards.append(entry.name)

        request = SampleRequest(
            count=count,
            separator=self._config.sampling.default_separator if separator is None else separator,
            exclude=directive.exclude,
            mode=mode,
            seed=seed,
        )
        return self.sample(entry.name, request, parse=parse, rng=rng)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _sync_placeholders(self) -> int:
        wildcard_dir = self._config.datadump.wildcard_dir
        if not wildcard_dir:
            return 0
        return self._catalog.sync_placeholders(wildcard_dir).created

    def refresh(self) -> RefreshResult:
        """Drop all in-memory indexes, rescan the folder and sync placeholders.

        Indexes are rebuilt (or reloaded from cache) on first use.
        """
        if not self.is_active:
            return RefreshResult(
                success=False,
                error="Datadump feature is not active. Enable it and set the folder first.",
            )

        log.info("refresh_started")
        started = time.perf_counter()
        try:
            with self._readers_lock:
                self._readers = {}
            self._registry.reset()
            count = self._catalog.scan()
            created = self._sync_placeholders()
        except (OSError, WildcardIndexError) as e:
            log.error("refresh_failed", error=str(e))
            return RefreshResult(success=False, error=str(e))

        duration_ms = int((time.perf_counter() - started) * 1000)
        log.info("refresh_complete", files=count, duration_ms=duration_ms)
        return RefreshResult(
            success=True,
            file_count=count,
            message=f"Refresh complete. Found {count} datadump file(s). "
            "Indexes will be rebuilt on first use.",
            placeholders_created=created,
            duration_ms=duration_ms,
        )
