"""CLI utilities."""

from pathlib import Path

from codescout.config.models import CodeScoutConfig
from codescout.retrieval.cache import EmbeddingCacheStore


def find_workspace_root(start_path: Path | None = None) -> Path:
    """Resolve the workspace root, defaulting to the current directory."""
    if start_path is None:
        start_path = Path.cwd()
    return start_path.resolve()


def open_store(workspace_root: Path, config: CodeScoutConfig) -> EmbeddingCacheStore:
    """Cache store for *workspace_root* honouring cache.cache_root."""
    cache_root = config.cache.cache_root
    return EmbeddingCacheStore(
        workspace_root, Path(cache_root).expanduser() if cache_root else None
    )
