"""Configuration constants.

Values here are NOT user-configurable: API limits, on-disk format
versions and naming. For configurable values, see models.py.
"""

# =============================================================================
# Embedding API Limits
# =============================================================================

MAX_BATCH_SIZE = 100
"""Maximum texts per batch embedding request (Gemini batchEmbedContents limit)."""

# =============================================================================
# Cache Storage
# =============================================================================

CACHE_SCHEMA_VERSION = 1
"""Bump when the persisted cache layout changes; older files load as empty."""

CACHE_DIR_NAME = "codescout"
"""Directory under the system temp dir holding per-workspace cache files."""

CACHE_FILE_SUFFIX = ".embeddings.json"

CACHE_DIR_MODE = 0o700
CACHE_FILE_MODE = 0o600
"""Owner-only permissions: embeddings are derived from proprietary source."""

# =============================================================================
# Retrieval Notifications
# =============================================================================

NOTIFY_STILL_WORKING = "still_working"
NOTIFY_FILES_SELECTED = "files_selected"
