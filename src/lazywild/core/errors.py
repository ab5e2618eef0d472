"""lazywild error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index

Cache problems (corrupt blob, failed write) are never raised; they are
reported as load results or logged. Only conditions where no index can be
produced at all surface as errors.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import ValidationError


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Index (3xxx)
    INDEX_SOURCE_MISSING = 3001
    INDEX_SOURCE_UNREADABLE = 3002
    INDEX_UNKNOWN_WILDCARD = 3003
    INDEX_REGISTRY_CLOSED = 3004


@dataclass(frozen=True, slots=True)
class LazyWildError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(LazyWildError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def from_validation(cls, exc: "ValidationError") -> "ConfigError":
        """First pydantic validation failure as an invalid_value error."""
        err = exc.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        return cls.invalid_value(field, err.get("input"), err["msg"])

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )


class WildcardIndexError(LazyWildError):
    """Errors raised when a line index cannot be produced."""

    @classmethod
    def source_missing(cls, name: str, path: str) -> "WildcardIndexError":
        return cls(
            code=ErrorCode.INDEX_SOURCE_MISSING,
            message=f"Source file for wildcard '{name}' not found: {path}",
            details={"name": name, "path": path},
        )

    @classmethod
    def source_unreadable(cls, path: str, reason: str) -> "WildcardIndexError":
        return cls(
            code=ErrorCode.INDEX_SOURCE_UNREADABLE,
            message=f"Failed to read source file {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unknown_wildcard(cls, name: str) -> "WildcardIndexError":
        return cls(
            code=ErrorCode.INDEX_UNKNOWN_WILDCARD,
            message=f"No datadump file is registered for wildcard '{name}'",
            details={"name": name},
        )

    @classmethod
    def registry_closed(cls) -> "WildcardIndexError":
        return cls(
            code=ErrorCode.INDEX_REGISTRY_CLOSED,
            message="Index registry is closed",
        )

