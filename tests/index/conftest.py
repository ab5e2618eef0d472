"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from lazywild.config.models import (
    DatadumpConfig,
    IndexConfig,
    LazyWildConfig,
)
from lazywild.index.catalog import Catalog
from lazywild.index.registry import IndexRegistry


@pytest.fixture
def dump_dir(tmp_path: Path) -> Path:
    """Datadump folder."""
    path = tmp_path / "dump"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def write_source(dump_dir: Path) -> Callable[[str, bytes], Path]:
    """Write a datadump source file, creating sub folders for nested names."""

    def _write(name: str, content: bytes) -> Path:
        path = dump_dir / f"{name}.txt"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def catalog(dump_dir: Path) -> Catalog:
    return Catalog(dump_dir)


@pytest.fixture
def registry(catalog: Catalog, cache_dir: Path) -> Generator[IndexRegistry, None, None]:
    """Open registry over the datadump folder; rescan the catalog after writing files."""
    with IndexRegistry(catalog, cache_dir, lock_shards=8) as reg:
        yield reg


@pytest.fixture
def make_config(tmp_path: Path, dump_dir: Path, cache_dir: Path) -> Callable[..., LazyWildConfig]:
    """Build an active config pointing at the temp datadump, cache and wildcard folders."""

    def _make(**datadump: object) -> LazyWildConfig:
        values: dict[str, object] = {
            "enabled": True,
            "folder": str(dump_dir),
            "wildcard_dir": str(tmp_path / "wildcards"),
        }
        values.update(datadump)
        return LazyWildConfig(
            datadump=DatadumpConfig.model_validate(values),
            index=IndexConfig(cache_dir=str(cache_dir)),
        )

    return _make
