"""Tests for the per-workspace embedding cache store."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from codescout.config.constants import CACHE_SCHEMA_VERSION
from codescout.core.errors import StorageError
from codescout.retrieval.cache import CacheEntry, EmbeddingCacheStore
from codescout.retrieval.hashing import workspace_key


def _entry(fp: str = "f" * 64, model: str = "fake:v1") -> CacheEntry:
    return CacheEntry(fingerprint=fp, embedding=(0.1, 0.2, 0.3), model=model)


class TestCacheEntry:
    """Validity and JSON shape of a single entry."""

    def test_valid_only_for_same_fingerprint_and_model(self) -> None:
        entry = _entry(fp="abc", model="gemini:m1")

        assert entry.is_valid_for("abc", "gemini:m1")
        assert not entry.is_valid_for("abd", "gemini:m1")
        assert not entry.is_valid_for("abc", "gemini:m2")

    def test_from_json_rejects_malformed(self) -> None:
        with pytest.raises(ValueError):
            CacheEntry.from_json({"fingerprint": "x", "model": "m", "embedding": "nope"})
        with pytest.raises(KeyError):
            CacheEntry.from_json({"fingerprint": "x"})


class TestPathResolution:
    """Cache file naming."""

    def test_path_is_named_by_workspace_key(self, tmp_path: Path) -> None:
        root = tmp_path / "project"
        store = EmbeddingCacheStore(root, tmp_path / "cache")

        assert store.path.parent == tmp_path / "cache"
        assert store.path.name.startswith(workspace_key(root))
        assert store.path == EmbeddingCacheStore.resolve_path(root, tmp_path / "cache")

    def test_distinct_workspaces_do_not_share_a_file(self, tmp_path: Path) -> None:
        a = EmbeddingCacheStore(tmp_path / "a", tmp_path / "cache")
        b = EmbeddingCacheStore(tmp_path / "b", tmp_path / "cache")
        assert a.path != b.path


class TestEnsureDir:
    """Owner-only cache directory creation."""

    def test_creates_directory_owner_only(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")

        store.ensure_dir()

        assert stat.S_IMODE(os.stat(store.cache_root).st_mode) == 0o700

    def test_tightens_existing_directory(self, tmp_path: Path) -> None:
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir(mode=0o755)
        os.chmod(cache_dir, 0o755)

        EmbeddingCacheStore(tmp_path / "ws", cache_dir).ensure_dir()

        assert stat.S_IMODE(os.stat(cache_dir).st_mode) == 0o700

    def test_failure_raises_storage_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a dir")
        store = EmbeddingCacheStore(tmp_path / "ws", blocker / "cache")

        with pytest.raises(StorageError):
            store.ensure_dir()

    def test_file_at_cache_root_raises_storage_error(self, tmp_path: Path) -> None:
        occupied = tmp_path / "cache"
        occupied.write_text("not a dir")
        store = EmbeddingCacheStore(tmp_path / "ws", occupied)

        with pytest.raises(StorageError):
            store.ensure_dir()


class TestLoad:
    """Loading degrades to an empty cache on any problem."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache").load() == {}

    def test_corrupt_json_is_empty(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        store.ensure_dir()
        store.path.write_text("{not json")

        assert store.load() == {}

    def test_version_mismatch_is_empty(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        store.ensure_dir()
        store.path.write_text(json.dumps({"version": CACHE_SCHEMA_VERSION + 1, "entries": {}}))

        assert store.load() == {}

    def test_malformed_entry_is_empty(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        store.ensure_dir()
        store.path.write_text(
            json.dumps({"version": CACHE_SCHEMA_VERSION, "entries": {"/ws/a": {"model": "m"}}})
        )

        assert store.load() == {}


class TestSave:
    """Atomic, owner-only persistence."""

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        cache = {"/ws/a.py": _entry(), "/ws/b.py": _entry(fp="b" * 64, model="fake:v2")}

        assert store.save(cache) is True

        assert store.load() == cache

    def test_file_is_owner_only(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")

        store.save({"/ws/a.py": _entry()})

        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_file_uses_versioned_schema(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")

        store.save({"/ws/a.py": _entry()})

        raw = json.loads(store.path.read_text())
        assert raw["version"] == CACHE_SCHEMA_VERSION
        assert raw["entries"]["/ws/a.py"]["model"] == "fake:v1"
        assert raw["entries"]["/ws/a.py"]["embedding"] == [0.1, 0.2, 0.3]

    def test_failed_write_keeps_previous_file(self, tmp_path: Path) -> None:
        """A crash mid-save never leaves a truncated cache behind."""
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        store.save({"/ws/a.py": _entry()})

        with patch("codescout.retrieval.cache.os.replace", side_effect=OSError("disk full")):
            ok = store.save({"/ws/b.py": _entry()})

        assert ok is False
        assert set(store.load()) == {"/ws/a.py"}
        assert [p.name for p in store.cache_root.iterdir()] == [store.path.name]


class TestClear:
    """Removing a workspace cache."""

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        store = EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache")
        store.save({"/ws/a.py": _entry()})

        assert store.clear() is True
        assert not store.path.exists()
        assert store.load() == {}

    def test_clear_without_file(self, tmp_path: Path) -> None:
        assert EmbeddingCacheStore(tmp_path / "ws", tmp_path / "cache").clear() is False
