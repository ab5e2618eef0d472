"""Tests for index/ops.py module (WildcardService)."""

from __future__ import annotations

import random
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from lazywild.config.models import LazyWildConfig
from lazywild.core.errors import ErrorCode, WildcardIndexError
from lazywild.index.models import SampleRequest, SelectionMode
from lazywild.index.ops import WildcardDirective, WildcardService, parse_directive

WriteSource = Callable[[str, bytes], Path]
MakeConfig = Callable[..., LazyWildConfig]


@pytest.fixture
def service(
    make_config: MakeConfig, write_source: WriteSource, tmp_path: Path
) -> Generator[WildcardService, None, None]:
    write_source("colors", b"red\ngreen\nblue\n")
    write_source("people/names", b"# header\nAda\nGrace\n")
    with WildcardService(make_config(), root=tmp_path) as svc:
        yield svc


class TestParseDirective:
    """Tests for parse_directive."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            ("colors", WildcardDirective("colors")),
            ("  colors  ", WildcardDirective("colors")),
            ("colors,not=red", WildcardDirective("colors", frozenset({"red"}))),
            (
                "colors, not=red, green ,",
                WildcardDirective("colors", frozenset({"red", "green"})),
            ),
            ("colors,other", WildcardDirective("colors")),
        ],
    )
    def test_parse(self, data: str, expected: WildcardDirective) -> None:
        """Name first, exclusions after not=."""
        assert parse_directive(data) == expected


class TestLifecycle:
    """Tests for open/close and activity."""

    def test_given_inactive_config_when_opened_then_nothing_served(
        self, tmp_path: Path, write_source: WriteSource
    ) -> None:
        """Disabled feature never claims a wildcard."""
        write_source("colors", b"red\n")

        with WildcardService(LazyWildConfig(), root=tmp_path) as svc:
            assert svc.is_active is False
            assert svc.is_datadump("colors") is False
            assert svc.process("colors") is None

    def test_given_active_config_when_opened_then_catalog_and_placeholders(
        self, service: WildcardService, tmp_path: Path
    ) -> None:
        """Opening scans the folder and syncs placeholders."""
        assert service.is_active
        assert service.is_datadump("Colors")
        assert (tmp_path / "wildcards" / "colors.txt").exists()
        assert (tmp_path / "wildcards" / "people" / "names.txt").exists()

    def test_given_unusable_wildcard_dir_when_opened_then_still_serves(
        self, make_config: MakeConfig, write_source: WriteSource, tmp_path: Path
    ) -> None:
        """A placeholder folder that cannot be created does not block sampling."""
        write_source("colors", b"red\n")
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file in the way")

        with WildcardService(make_config(wildcard_dir=str(blocker)), root=tmp_path) as svc:
            assert svc.process("colors") == "red"

    def test_given_closed_service_when_indexed_then_error(
        self, make_config: MakeConfig, write_source: WriteSource, tmp_path: Path
    ) -> None:
        """Closed services refuse to build."""
        write_source("colors", b"red\n")
        svc = WildcardService(make_config(), root=tmp_path).open()
        svc.close()

        with pytest.raises(WildcardIndexError) as exc_info:
            svc.get_index("colors")
        assert exc_info.value.code == ErrorCode.INDEX_REGISTRY_CLOSED


class TestProcess:
    """Tests for process()."""

    def test_given_unknown_name_when_processed_then_none(self, service: WildcardService) -> None:
        """Non-datadump names fall back to the host loader."""
        assert service.process("animals") is None

    def test_given_seed_when_processed_then_deterministic(self, service: WildcardService) -> None:
        """SEEDED mode picks seed % line_count."""
        assert service.process("colors", mode=SelectionMode.SEEDED, seed=4) == "green"

    def test_given_exclusions_when_processed_then_respected(
        self, service: WildcardService
    ) -> None:
        """not= values are never picked while alternatives exist."""
        for seed in range(10):
            result = service.process("colors,not=red,green", rng=random.Random(seed))
            assert result == "blue"

    def test_given_count_when_processed_then_default_separator(
        self, service: WildcardService
    ) -> None:
        """Picks are joined with the configured default separator."""
        result = service.process("people/names", count=2, rng=random.Random(1))

        assert result is not None
        assert sorted(result.split(", ")) == ["Ada", "Grace"]

    def test_given_used_list_when_processed_then_name_recorded(
        self, service: WildcardService
    ) -> None:
        """Resolved names are appended to the caller's list."""
        used: list[str] = []

        service.process("COLORS", used_wildcards=used)
        service.process("unknown", used_wildcards=used)

        assert used == ["colors"]

    def test_given_parse_fn_when_processed_then_applied(self, service: WildcardService) -> None:
        """Each pick is passed through the host parser."""
        result = service.process(
            "colors", mode=SelectionMode.SEEDED, seed=0, parse=lambda s: s.upper()
        )

        assert result == "RED"

    def test_given_deleted_source_when_processed_then_error_not_empty(
        self, service: WildcardService, dump_dir: Path
    ) -> None:
        """A missing file is distinguishable from an empty result."""
        (dump_dir / "colors.txt").unlink()

        with pytest.raises(WildcardIndexError) as exc_info:
            service.process("colors")
        assert exc_info.value.code == ErrorCode.INDEX_SOURCE_MISSING


class TestReaderMode:
    """Small files are cached in memory, large files read lazily."""

    def test_given_small_file_when_read_then_content_cached(
        self, service: WildcardService
    ) -> None:
        """Files below the threshold use cache_content."""
        assert service.reader("colors").cache_content is True

    def test_given_large_file_when_read_then_lazy(
        self, make_config: MakeConfig, write_source: WriteSource, tmp_path: Path
    ) -> None:
        """Files at or above the threshold are re-read per request."""
        write_source("big", b"x" * (1024 * 1024) + b"\ny\n")

        with WildcardService(
            make_config(large_file_threshold_mb=1), root=tmp_path
        ) as svc:
            reader = svc.reader("big")
            assert reader.cache_content is False
            assert reader.line_count == 2

    def test_given_same_index_when_reader_requested_then_reused(
        self, service: WildcardService
    ) -> None:
        """The reader is kept while its index stays current."""
        assert service.reader("colors") is service.reader("colors")

    def test_given_invalidated_when_reader_requested_then_new_reader(
        self, service: WildcardService
    ) -> None:
        """Invalidation drops the reader along with the index."""
        first = service.reader("colors")

        assert service.invalidate("colors") is True
        assert service.reader("colors") is not first


class TestSample:
    """Tests for sample()."""

    def test_sample_uses_config_attempts(self, service: WildcardService) -> None:
        """Sampling an existing name works through the service."""
        request = SampleRequest(count=3, separator="/", mode=SelectionMode.SEEDED, seed=2)

        assert service.sample("colors", request) == "blue/blue/blue"

    def test_sample_unknown_name_raises(self, service: WildcardService) -> None:
        """Unknown names surface as INDEX_UNKNOWN_WILDCARD."""
        with pytest.raises(WildcardIndexError) as exc_info:
            service.sample("nope", SampleRequest())
        assert exc_info.value.code == ErrorCode.INDEX_UNKNOWN_WILDCARD


class TestRefresh:
    """Tests for refresh()."""

    def test_given_new_file_when_refreshed_then_found(
        self, service: WildcardService, write_source: WriteSource, tmp_path: Path
    ) -> None:
        """Refresh picks up new files and creates their placeholders."""
        # Given
        service.get_index("colors")
        write_source("animals", b"cat\n")

        # When
        result = service.refresh()

        # Then
        assert result.success
        assert result.file_count == 3
        assert result.placeholders_created == 1
        assert result.message is not None and "3" in result.message
        assert service.registry.indexed_keys() == []
        assert service.process("animals") == "cat"

    def test_given_inactive_when_refreshed_then_failure(self, tmp_path: Path) -> None:
        """Refresh explains that the feature is off."""
        with WildcardService(LazyWildConfig(), root=tmp_path) as svc:
            result = svc.refresh()

        assert not result.success
        assert result.error is not None
        assert result.file_count == 0

    def test_given_cached_index_when_refreshed_then_reloaded_from_cache(
        self, service: WildcardService
    ) -> None:
        """Cache files survive a refresh."""
        service.get_index("colors")

        service.refresh()

        assert service.get_index("colors").loaded_from_cache is True
        assert service.registry.scan_count == 1
