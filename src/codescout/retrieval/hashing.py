"""Content fingerprints for cache invalidation.

Whitespace is stripped before hashing, so reformatting a file does not
trigger a re-embedding. Only changes to the non-whitespace characters do.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

_WHITESPACE = re.compile(r"\s+")


def fingerprint(text: str) -> str:
    """SHA-256 hex digest of *text* with all whitespace removed."""
    normalized = _WHITESPACE.sub("", text)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def workspace_key(root: Path | str) -> str:
    """Stable cache namespace for a workspace root path.

    Hashed verbatim: two roots differing only by a space must not share a cache.
    """
    return hashlib.sha256(str(root).encode("utf-8")).hexdigest()
