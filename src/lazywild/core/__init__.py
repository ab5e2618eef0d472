"""Core module exports."""

from lazywild.core.errors import (
    ConfigError,
    ErrorCode,
    LazyWildError,
    WildcardIndexError,
)
from lazywild.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from lazywild.core.progress import progress, spinner, status

__all__ = [
    # Errors
    "LazyWildError",
    "ConfigError",
    "ErrorCode",
    "WildcardIndexError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Progress
    "progress",
    "spinner",
    "status",
]
