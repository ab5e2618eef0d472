"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are on-disk format details and safety bounds.

For configurable values, see models.py (IndexConfig, SamplingConfig, etc.).
"""

# =============================================================================
# Binary Index Cache Format
# =============================================================================

CACHE_MAGIC = b"LWIX"
"""Tag at the start of every cache blob."""

CACHE_VERSION = 1
"""Current cache format version. Blobs with any other version are ignored."""

CACHE_SUFFIX = ".lwidx"
"""File suffix of cache blobs inside the cache directory."""

MAX_LINE_COUNT = 100_000_000
"""Upper bound on the line count accepted from a cache blob."""

MAX_FINGERPRINT_BYTES = 1024
"""Upper bound on the encoded fingerprint length accepted from a cache blob."""

# =============================================================================
# Sampling
# =============================================================================

MAX_SAMPLE_ATTEMPTS = 1000
"""Default draw attempts per pick before the last draw is accepted as-is."""

# =============================================================================
# Placeholder Files
# =============================================================================
# A placeholder is a comment-only file in the host's wildcard folder that makes
# a datadump file visible to the host under the same name.

PLACEHOLDER_TEXT = "# lazywild datadump placeholder - do not edit"
PLACEHOLDER_CONTENT = PLACEHOLDER_TEXT + "\n"

PLACEHOLDER_MAX_BYTES = 200
"""Files larger than this are never treated as placeholders."""

SOURCE_SUFFIX = ".txt"
"""Only files with this suffix are picked up from the datadump folder."""

# =============================================================================
# Paths
# =============================================================================

DATA_DIR_NAME = ".lazywild"
CONFIG_FILE_NAME = "config.yaml"
CACHE_DIR_NAME = "cache"

BYTES_PER_MB = 1024 * 1024
