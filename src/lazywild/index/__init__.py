"""Index module - lazily built line indexes for datadump wildcards.

This module provides:
- Line scanning: one streaming pass recording (offset, length) of valid lines
- Binary cache: versioned, fingerprinted index blobs next to the project
- Registry: get-or-build with one build per key and bounded build locks
- Reading and sampling: seek-and-read lines, bounded-retry selection

Public API is in `lazywild.index.ops`:
- WildcardService: High-level facade used by the host prompt engine
- WildcardDirective, RefreshResult: Result types
"""

from lazywild.index.cache import load_index, save_index
from lazywild.index.catalog import Catalog, is_large_file, normalize_key
from lazywild.index.models import (
    CacheLoadResult,
    CacheStatus,
    CatalogEntry,
    IndexState,
    LineIndex,
    SampleRequest,
    SelectionMode,
    SyncResult,
)
from lazywild.index.ops import RefreshResult, WildcardDirective, WildcardService, parse_directive
from lazywild.index.reader import LineReader
from lazywild.index.registry import IndexRegistry
from lazywild.index.sampler import sample
from lazywild.index.scanner import ScanOptions, ScanResult, parse_valid_lines, scan_lines

__all__ = [
    # Public API (ops.py)
    "WildcardService",
    "WildcardDirective",
    "RefreshResult",
    "parse_directive",
    # Components
    "Catalog",
    "IndexRegistry",
    "LineReader",
    "sample",
    "scan_lines",
    "parse_valid_lines",
    "load_index",
    "save_index",
    "is_large_file",
    "normalize_key",
    # Enums
    "CacheStatus",
    "IndexState",
    "SelectionMode",
    # Data types
    "CacheLoadResult",
    "CatalogEntry",
    "LineIndex",
    "SampleRequest",
    "ScanOptions",
    "ScanResult",
    "SyncResult",
]
