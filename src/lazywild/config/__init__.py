"""Config module exports."""

from lazywild.config.loader import LazyWildSettings, get_cache_dir, load_config
from lazywild.config.models import (
    DatadumpConfig,
    IndexConfig,
    LazyWildConfig,
    LoggingConfig,
    SamplingConfig,
)

__all__ = [
    "load_config",
    "get_cache_dir",
    "LazyWildConfig",
    "LazyWildSettings",
    "DatadumpConfig",
    "IndexConfig",
    "LoggingConfig",
    "SamplingConfig",
]
