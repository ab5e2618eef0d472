"""Tests for the lwd CLI.

Covers:
- status (text and --json)
- index, sample, refresh
- clear (with and without confirmation)
- threshold
- logging configuration applied to commands
"""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lazywild.cli.clear import clear_cache
from lazywild.cli.main import cli
from lazywild.cli.utils import cli_logging_config
import lazywild.config.loader as loader
from lazywild.config.loader import user_config_path
from lazywild.config.models import LoggingConfig, LogOutputConfig
from lazywild.config.user_config import UserConfig, load_user_config, write_user_config


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to the runner's streams after each invocation."""
    yield
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Root with an active datadump folder of two wildcards."""
    dump = tmp_path / "dump"
    (dump / "people").mkdir(parents=True)
    (dump / "colors.txt").write_bytes(b"red\ngreen\nblue\n")
    (dump / "people" / "names.txt").write_bytes(b"# header\nAda\nGrace\n")
    write_user_config(
        user_config_path(tmp_path),
        UserConfig(
            datadump_enabled=True,
            datadump_folder=str(dump),
            wildcard_dir=str(tmp_path / "wildcards"),
        ),
    )
    return tmp_path


def _cache_dir(root: Path) -> Path:
    return root / ".lazywild" / "cache"


class TestCli:
    """Group-level behavior."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the program name."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "lwd" in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        """All subcommands are registered."""
        result = runner.invoke(cli, ["--help"])

        for name in ("status", "index", "sample", "refresh", "clear", "threshold"):
            assert name in result.output


class TestStatusCommand:
    """Tests for lwd status."""

    def test_json_lists_wildcards(self, runner: CliRunner, project: Path) -> None:
        """--json reports configuration and catalog entries."""
        result = runner.invoke(cli, ["--root", str(project), "status", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["active"] is True
        assert data["large_file_threshold_mb"] == 50
        assert [w["name"] for w in data["wildcards"]] == ["colors", "people/names"]
        assert all(w["cached"] is False for w in data["wildcards"])

    def test_json_reports_replaced_placeholders(self, runner: CliRunner, project: Path) -> None:
        """Placeholders overwritten with user content are listed."""
        runner.invoke(cli, ["--root", str(project), "refresh"])
        (project / "wildcards" / "colors.txt").write_text("cyan\nmagenta\n")

        result = runner.invoke(cli, ["--root", str(project), "status", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["modified_placeholders"] == ["colors"]

    def test_inactive_root(self, runner: CliRunner, tmp_path: Path) -> None:
        """Unconfigured roots report an inactive feature."""
        result = runner.invoke(cli, ["--root", str(tmp_path), "status"])

        assert result.exit_code == 0
        assert "Datadump: inactive" in result.output


class TestIndexCommand:
    """Tests for lwd index."""

    def test_indexes_all_wildcards(self, runner: CliRunner, project: Path) -> None:
        """Every catalog entry gets a cache blob."""
        result = runner.invoke(cli, ["--root", str(project), "index"])

        assert result.exit_code == 0, result.output
        assert len(list(_cache_dir(project).glob("*.lwidx"))) == 2

    def test_indexes_named_wildcard(self, runner: CliRunner, project: Path) -> None:
        """Only the requested names are indexed."""
        result = runner.invoke(cli, ["--root", str(project), "index", "colors"])

        assert result.exit_code == 0, result.output
        assert len(list(_cache_dir(project).glob("*.lwidx"))) == 1

    def test_unknown_name_fails(self, runner: CliRunner, project: Path) -> None:
        """Unknown names are reported."""
        result = runner.invoke(cli, ["--root", str(project), "index", "animals"])

        assert result.exit_code == 1
        assert "Unknown wildcard: animals" in result.output

    def test_inactive_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        """Commands needing the feature refuse to run when it is off."""
        result = runner.invoke(cli, ["--root", str(tmp_path), "index"])

        assert result.exit_code == 1
        assert "Datadump is not active" in result.output

    def test_enabled_without_folder_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        """An enabled feature with no folder names the missing setting."""
        write_user_config(user_config_path(tmp_path), UserConfig(datadump_enabled=True))

        result = runner.invoke(cli, ["--root", str(tmp_path), "index"])

        assert result.exit_code == 1
        assert "Missing required config field: datadump.folder" in result.output

    def test_invalid_config_fails(self, runner: CliRunner, project: Path) -> None:
        """A bad setting is reported instead of turning the feature off."""
        path = user_config_path(project)
        path.write_text(path.read_text() + "\nlarge_file_threshold_mb: 0\n")

        result = runner.invoke(cli, ["--root", str(project), "index"])

        assert result.exit_code == 1
        assert "large_file_threshold_mb" in result.output


class TestSampleCommand:
    """Tests for lwd sample."""

    def test_seeded_sample(self, runner: CliRunner, project: Path) -> None:
        """--seed selects seed % line_count."""
        result = runner.invoke(cli, ["--root", str(project), "sample", "colors", "--seed", "4"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "green"

    def test_count_and_separator(self, runner: CliRunner, project: Path) -> None:
        """Multiple picks are joined with the given separator."""
        result = runner.invoke(
            cli,
            ["--root", str(project), "sample", "people/names", "-n", "2", "-s", " & "],
        )

        assert result.exit_code == 0, result.output
        assert sorted(result.output.strip().split(" & ")) == ["Ada", "Grace"]

    def test_exclude(self, runner: CliRunner, project: Path) -> None:
        """--exclude values are skipped."""
        result = runner.invoke(
            cli,
            ["--root", str(project), "sample", "colors", "-x", "red", "-x", "green"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "blue"

    def test_unknown_name(self, runner: CliRunner, project: Path) -> None:
        """Unknown names exit with an error."""
        result = runner.invoke(cli, ["--root", str(project), "sample", "animals"])

        assert result.exit_code == 1
        assert "Unknown wildcard" in result.output


class TestRefreshCommand:
    """Tests for lwd refresh."""

    def test_refresh_creates_placeholders(self, runner: CliRunner, project: Path) -> None:
        """Placeholders exist for every datadump file after refresh."""
        result = runner.invoke(cli, ["--root", str(project), "refresh"])

        assert result.exit_code == 0, result.output
        assert (project / "wildcards" / "colors.txt").exists()
        assert (project / "wildcards" / "people" / "names.txt").exists()


class TestClearCommand:
    """Tests for lwd clear."""

    def test_clear_with_yes_removes_cache(self, runner: CliRunner, project: Path) -> None:
        """--yes deletes the cache without prompting."""
        runner.invoke(cli, ["--root", str(project), "index"])
        assert _cache_dir(project).exists()

        result = runner.invoke(cli, ["--root", str(project), "clear", "--yes"])

        assert result.exit_code == 0, result.output
        assert not _cache_dir(project).exists()

    def test_clear_cancelled_keeps_cache(self, tmp_path: Path) -> None:
        """Declining the prompt leaves the cache in place."""
        cache = tmp_path / "cache"
        cache.mkdir()
        (cache / "a.lwidx").write_bytes(b"LWIX")

        with patch("lazywild.cli.clear.questionary.select") as select:
            select.return_value.ask.return_value = False
            result = clear_cache(cache)

        assert result is False
        assert cache.exists()

    def test_clear_nothing_to_clear(self, tmp_path: Path) -> None:
        """Missing cache dir is a no-op."""
        assert clear_cache(tmp_path / "cache", yes=True) is False


class TestThresholdCommand:
    """Tests for lwd threshold."""

    def test_threshold_persisted(self, runner: CliRunner, project: Path) -> None:
        """New threshold is written to the user config."""
        result = runner.invoke(cli, ["--root", str(project), "threshold", "12"])

        assert result.exit_code == 0, result.output
        cfg = load_user_config(user_config_path(project))
        assert cfg.large_file_threshold_mb == 12
        assert cfg.datadump_enabled is True

    def test_threshold_below_one_rejected(self, runner: CliRunner, project: Path) -> None:
        """Thresholds below 1 MB are refused."""
        result = runner.invoke(cli, ["--root", str(project), "threshold", "0"])

        assert result.exit_code == 1
        assert load_user_config(user_config_path(project)).large_file_threshold_mb == 50


class TestLoggingConfig:
    """Configured logging reaches CLI runs."""

    def test_file_output_receives_events(
        self, runner: CliRunner, project: Path, tmp_path: Path
    ) -> None:
        """A JSON file output from the global config records service events."""
        # Given
        log_file = tmp_path / "logs" / "lwd.jsonl"
        loader.GLOBAL_CONFIG_PATH.write_text(
            "logging:\n"
            "  level: INFO\n"
            "  outputs:\n"
            "    - destination: stderr\n"
            f"    - destination: {log_file}\n"
            "      format: json\n"
        )

        # When
        result = runner.invoke(cli, ["--root", str(project), "sample", "colors", "--seed", "0"])

        # Then
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "red"
        events = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert "wildcard_service_opened" in {e["event"] for e in events}

    def test_user_log_level_applied(self, runner: CliRunner, project: Path, tmp_path: Path) -> None:
        """log_level from the user file sets the root level."""
        log_file = tmp_path / "lwd.jsonl"
        loader.GLOBAL_CONFIG_PATH.write_text(
            f"logging:\n  outputs:\n    - destination: {log_file}\n      format: json\n"
        )
        path = user_config_path(project)
        path.write_text(path.read_text() + "\nlog_level: ERROR\n")

        result = runner.invoke(cli, ["--root", str(project), "index"])

        assert result.exit_code == 0, result.output
        assert not log_file.exists() or log_file.read_text() == ""


class TestCliLoggingConfig:
    """Tests for cli_logging_config."""

    def test_console_without_level_held_at_warning(self) -> None:
        """Console outputs stay quiet while files keep the root level."""
        config = LoggingConfig(
            level="INFO",
            outputs=[
                LogOutputConfig(destination="stderr"),
                LogOutputConfig(destination="/var/log/lwd.jsonl", format="json"),
            ],
        )

        result = cli_logging_config(config)

        assert result.level == "INFO"
        assert [o.level for o in result.outputs] == ["WARNING", None]

    def test_explicit_console_level_kept(self) -> None:
        """A level set on the console output is respected."""
        config = LoggingConfig(outputs=[LogOutputConfig(destination="stdout", level="INFO")])

        assert cli_logging_config(config).outputs[0].level == "INFO"

    def test_verbose_lifts_everything_to_debug(self) -> None:
        """-v overrides the root and per-output levels."""
        config = LoggingConfig(
            level="ERROR",
            outputs=[LogOutputConfig(destination="stderr", level="ERROR")],
        )

        result = cli_logging_config(config, verbose=True)

        assert result.level == "DEBUG"
        assert result.outputs[0].level is None
