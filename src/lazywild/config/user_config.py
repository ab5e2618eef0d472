"""Minimal user-facing configuration.

This module defines only the config fields that users should care about.
Everything else uses opinionated defaults.

User config is stored in .lazywild/config.yaml
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from lazywild.core.errors import ConfigError
from lazywild.core.logging import get_logger

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

log = get_logger("config")

# Default values - kept in sync with UserConfig defaults
DEFAULT_THRESHOLD_MB = 50
DEFAULT_LOG_LEVEL: LogLevel = "INFO"


class UserConfig(BaseModel):
    """User-facing configuration options."""

    datadump_enabled: bool = Field(
        default=False,
        description="Serve wildcards from the datadump folder.",
    )
    datadump_folder: str = Field(
        default="",
        description="Folder holding large *.txt wildcard sources.",
    )
    wildcard_dir: str = Field(
        default="",
        description="Host wildcard folder that receives placeholder files.",
    )
    large_file_threshold_mb: int = Field(
        default=DEFAULT_THRESHOLD_MB,
        description="Files at or above this size (MB) are read lazily.",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="Log level. DEBUG is very verbose.",
    )

    @field_validator("large_file_threshold_mb")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Threshold must be at least 1 MB")
        return v


def write_user_config(path: Path, config: UserConfig | None = None) -> None:
    """Write user config file with helpful comments.

    Args:
        path: Path to write config.yaml
        config: Config values (uses defaults if None)
    """
    cfg = config or UserConfig()

    lines = [
        "# lazywild configuration",
        "",
        "# Serve wildcards from the datadump folder",
        f"datadump_enabled: {'true' if cfg.datadump_enabled else 'false'}",
        "",
        "# Folder scanned recursively for *.txt files",
        f"datadump_folder: {yaml.safe_dump(cfg.datadump_folder).splitlines()[0]}",
        "",
        "# Host wildcard folder; placeholder files are created here on refresh",
        f"wildcard_dir: {yaml.safe_dump(cfg.wildcard_dir).splitlines()[0]}",
        "",
    ]

    lines.append("# Files at or above this size (MB) are read lazily from disk")
    if cfg.large_file_threshold_mb != DEFAULT_THRESHOLD_MB:
        lines.append(f"large_file_threshold_mb: {cfg.large_file_threshold_mb}")
    else:
        lines.append(f"# large_file_threshold_mb: {cfg.large_file_threshold_mb}")
    lines.append("")

    lines.append("# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL")
    if cfg.log_level != DEFAULT_LOG_LEVEL:
        lines.append(f"log_level: {cfg.log_level}")
    else:
        lines.append(f"# log_level: {cfg.log_level}")
    lines.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines))


def _read_user_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "expected a mapping of settings")
    return data


def _validate(data: dict[str, Any]) -> UserConfig:
    try:
        return UserConfig(**data)
    except ValidationError as e:
        raise ConfigError.from_validation(e) from e


def load_user_config(path: Path) -> UserConfig:
    """Load user config from YAML file; defaults when the file does not exist.

    Raises:
        ConfigError: If the file cannot be read or parsed, or a value is invalid.
    """
    return _validate(_read_user_yaml(path))


def save_threshold(path: Path, threshold_mb: int) -> UserConfig:
    """Persist a new large-file threshold, keeping the other user settings.

    The file is only rewritten when every other setting in it is valid;
    otherwise it is left untouched and ConfigError is raised.
    """
    if threshold_mb < 1:
        raise ConfigError.invalid_value(
            "large_file_threshold_mb", threshold_mb, "Threshold must be at least 1 MB"
        )
    data = _read_user_yaml(path)
    cfg = _validate({**data, "large_file_threshold_mb": threshold_mb})
    write_user_config(path, cfg)
    log.info("threshold_saved", threshold_mb=threshold_mb)
    return cfg
