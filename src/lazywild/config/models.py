"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (LAZYWILD__SECTION__KEY)
3. User YAML (<root>/.lazywild/config.yaml)
4. Global YAML (~/.config/lazywild/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    LAZYWILD__<SECTION>__<KEY>=<VALUE>

Examples:
    LAZYWILD__LOGGING__LEVEL=DEBUG
    LAZYWILD__DATADUMP__ENABLED=true
    LAZYWILD__DATADUMP__FOLDER=/data/dumps
    LAZYWILD__INDEX__LOCK_SHARDS=128
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from lazywild.config.constants import BYTES_PER_MB, MAX_SAMPLE_ATTEMPTS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        LAZYWILD__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every cache hit and sampling exhaustion.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatadumpConfig(BaseModel):
    """Datadump folder settings.

    Env vars:
        LAZYWILD__DATADUMP__ENABLED: Serve wildcards from the datadump folder
        LAZYWILD__DATADUMP__FOLDER: Folder scanned for *.txt source files
        LAZYWILD__DATADUMP__WILDCARD_DIR: Host wildcard folder for placeholders
        LAZYWILD__DATADUMP__LARGE_FILE_THRESHOLD_MB: Lazy-read files at or above this size
    """

    enabled: bool = Field(
        default=False,
        description="Serve wildcards from the datadump folder.",
    )
    folder: str | None = Field(
        default=None,
        description="Folder scanned recursively for *.txt source files.",
    )
    wildcard_dir: str | None = Field(
        default=None,
        description="Host wildcard folder. Placeholder files are created here on refresh. "
        "Placeholder sync is skipped when unset.",
    )
    large_file_threshold_mb: int = Field(
        default=50,
        description="Files at or above this size (MB) are read lazily from disk; smaller "
        "files keep their lines in memory after the first read.",
    )

    @field_validator("large_file_threshold_mb")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Threshold must be at least 1 MB, got {v}")
        return v

    @property
    def large_file_threshold_bytes(self) -> int:
        return self.large_file_threshold_mb * BYTES_PER_MB

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.folder and self.folder.strip())


class IndexConfig(BaseModel):
    """Line index configuration.

    Env vars:
        LAZYWILD__INDEX__CACHE_DIR: Override cache blob location
        LAZYWILD__INDEX__SCAN_CHUNK_BYTES: Read size for streaming scans
        LAZYWILD__INDEX__WHOLE_FILE_MAX_BYTES: Buffer whole files up to this size
        LAZYWILD__INDEX__LOCK_SHARDS: Number of build locks
    """

    cache_dir: str | None = Field(
        default=None,
        description="Where binary index caches are stored. Default: .lazywild/cache under root.",
    )
    scan_chunk_bytes: int = Field(
        default=1024 * 1024,
        description="Read size for streaming scans of large files.",
    )
    whole_file_max_bytes: int = Field(
        default=8 * 1024 * 1024,
        description="Files up to this size are read in one call instead of streamed. "
        "0 always streams.",
    )
    lock_shards: int = Field(
        default=64,
        description="Build lock table size. Unrelated wildcards hashing to the same "
        "shard build one after the other.",
    )

    @field_validator("scan_chunk_bytes", "lock_shards")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be at least 1, got {v}")
        return v

    @field_validator("whole_file_max_bytes")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Must not be negative, got {v}")
        return v


class SamplingConfig(BaseModel):
    """Sampling defaults.

    Env vars:
        LAZYWILD__SAMPLING__MAX_ATTEMPTS: Draws per pick before accepting a repeat
        LAZYWILD__SAMPLING__DEFAULT_SEPARATOR: Separator between picks
    """

    max_attempts: int = Field(
        default=MAX_SAMPLE_ATTEMPTS,
        description="Draw attempts per pick. When exhausted the last draw is used even "
        "if it is excluded or repeated.",
    )
    default_separator: str = Field(
        default=", ",
        description="Separator used when the caller does not supply one.",
    )

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_attempts must be at least 1, got {v}")
        return v


class LazyWildConfig(BaseModel):
    """Root configuration for lazywild."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    datadump: DatadumpConfig = Field(default_factory=DatadumpConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
