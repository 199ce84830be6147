"""Durable per-workspace embedding cache.

One JSON file per workspace, named by a hash of the workspace root, under
a shared owner-only directory (default: <system temp>/codescout)::

    {"version": 1,
     "entries": {"<identity>": {"fingerprint": "<sha256>",
                                "model": "gemini:gemini-embedding-001",
                                "embedding": [0.01, ...]}}}

Failure policy:
  - load(): anything unreadable or malformed yields an empty cache
  - save(): OSError is logged and reported as False, never raised
  - ensure_dir(): failure to create the directory raises StorageError
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from codescout.config.constants import (
    CACHE_DIR_MODE,
    CACHE_DIR_NAME,
    CACHE_FILE_MODE,
    CACHE_FILE_SUFFIX,
    CACHE_SCHEMA_VERSION,
)
from codescout.core.errors import StorageError
from codescout.retrieval.hashing import workspace_key

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Embedding of one file plus what it was computed from."""

    fingerprint: str
    embedding: tuple[float, ...]
    model: str

    def is_valid_for(self, fingerprint: str, model: str) -> bool:
        return self.fingerprint == fingerprint and self.model == model

    def to_json(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "model": self.model,
            "embedding": list(self.embedding),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> CacheEntry:
        fp = data["fingerprint"]
        model = data["model"]
        embedding = data["embedding"]
        if not isinstance(fp, str) or not isinstance(model, str) or not isinstance(embedding, list):
            raise ValueError("malformed cache entry")
        return cls(fingerprint=fp, embedding=tuple(float(x) for x in embedding), model=model)


EmbeddingCache = dict[str, CacheEntry]


def default_cache_root() -> Path:
    return Path(tempfile.gettempdir()) / CACHE_DIR_NAME


class EmbeddingCacheStore:
    """Reads and writes the cache file for one workspace."""

    def __init__(self, workspace_root: Path, cache_root: Path | None = None) -> None:
        self.cache_root = cache_root or default_cache_root()
        self.path = self.resolve_path(workspace_root, self.cache_root)
        self._write_lock = threading.Lock()

    @staticmethod
    def resolve_path(workspace_root: Path | str, cache_root: Path | None = None) -> Path:
        """Cache file location for *workspace_root*."""
        root = cache_root or default_cache_root()
        return root / f"{workspace_key(workspace_root)}{CACHE_FILE_SUFFIX}"

    def ensure_dir(self) -> None:
        """Create the cache directory with owner-only permissions.

        Raises:
            StorageError: The directory cannot be created.
        """
        try:
            os.makedirs(self.cache_root, mode=CACHE_DIR_MODE, exist_ok=True)
            # makedirs honours umask, and an existing dir keeps its old mode
            os.chmod(self.cache_root, CACHE_DIR_MODE)
        except OSError as e:
            raise StorageError.directory_failed(str(self.cache_root), str(e)) from e

    def load(self) -> EmbeddingCache:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict) or raw.get("version") != CACHE_SCHEMA_VERSION:
                log.warning(
                    "cache.version_mismatch",
                    path=str(self.path),
                    expected=CACHE_SCHEMA_VERSION,
                    found=raw.get("version") if isinstance(raw, dict) else None,
                )
                return {}
            entries = raw.get("entries")
            if not isinstance(entries, dict):
                raise ValueError("'entries' is not an object")
            cache = {identity: CacheEntry.from_json(data) for identity, data in entries.items()}
        except (OSError, ValueError, KeyError, TypeError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            log.warning("cache.load_failed", path=str(self.path), error=str(e))
            return {}

        log.info("cache.loaded", path=str(self.path), entries=len(cache))
        return cache

    def save(self, cache: Mapping[str, CacheEntry]) -> bool:
        """Atomically replace the cache file. Returns False if the write failed."""
        payload = {
            "version": CACHE_SCHEMA_VERSION,
            "entries": {identity: entry.to_json() for identity, entry in cache.items()},
        }
        data = json.dumps(payload, separators=(",", ":"))

        with self._write_lock:
            tmp_path: str | None = None
            try:
                self.ensure_dir()
                # mkstemp creates the file 0o600
                fd, tmp_path = tempfile.mkstemp(
                    dir=self.cache_root, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp_path, CACHE_FILE_MODE)
                os.replace(tmp_path, self.path)
                tmp_path = None
            except (OSError, StorageError) as e:
                log.error("cache.save_failed", path=str(self.path), error=str(e))
                return False
            finally:
                if tmp_path is not None:
                    Path(tmp_path).unlink(missing_ok=True)

        log.debug("cache.saved", path=str(self.path), entries=len(cache), bytes=len(data))
        return True

    def clear(self) -> bool:
        """Delete this workspace's cache file. Returns True if a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        log.info("cache.cleared", path=str(self.path))
        return True
