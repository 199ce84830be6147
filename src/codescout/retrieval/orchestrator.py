"""Incremental semantic file retrieval.

One RetrievalOrchestrator per workspace session. Each call walks:

    Listing -> Diffing -> Embedding -> Persisting -> QueryEmbedding -> Ranking -> Done

Only files whose fingerprint or embedding model changed since they were
cached are sent to the provider. The cache is persisted before the query
is embedded, so embedding work survives a failure later in the call.

Progress notifications (fire-and-forget):
  - "still_working": the call is still running after progress_delay_sec
  - "files_selected": ranking finished; payload carries the file names
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog

from codescout.config.constants import NOTIFY_FILES_SELECTED, NOTIFY_STILL_WORKING
from codescout.config.models import CodeScoutConfig, EmbeddingConfig, RetrievalConfig
from codescout.core.errors import ConfigError, WorkspaceError
from codescout.providers.base import EmbeddingProvider, TaskRole, Vector
from codescout.providers.router import FALLBACK_KEY_ENVS, get_embedding_provider
from codescout.retrieval.batching import BatchEmbeddingClient
from codescout.retrieval.cache import CacheEntry, EmbeddingCache, EmbeddingCacheStore
from codescout.retrieval.models import (
    CandidateFile,
    FileHandle,
    ProgressSink,
    RetrievalResult,
    RetrievalStage,
    RetrievalStats,
)
from codescout.retrieval.ranking import rank
from codescout.retrieval.sources import FileSource, WorkspaceFileSource, render_candidate

log = structlog.get_logger()


class RetrievalOrchestrator:
    """Finds the files most relevant to a query, reusing cached embeddings.

    Concurrent calls on one instance are safe: merging into the cache and
    writing it to disk happen under a single lock.
    """

    def __init__(
        self,
        workspace_root: Path | None,
        file_source: FileSource,
        provider: EmbeddingProvider | None,
        store: EmbeddingCacheStore | None = None,
        *,
        settings: RetrievalConfig | None = None,
        embedding: EmbeddingConfig | None = None,
        progress: ProgressSink | None = None,
    ) -> None:
        embedding = embedding or EmbeddingConfig()
        self.workspace_root = workspace_root
        self.settings = settings or RetrievalConfig()
        self._source = file_source
        self._provider = provider
        self._store = store
        self._progress = progress
        self._batch_client = (
            BatchEmbeddingClient(
                provider,
                batch_size=embedding.batch_size,
                max_concurrent_batches=embedding.max_concurrent_batches,
            )
            if provider is not None
            else None
        )

        self._cache: EmbeddingCache | None = None
        self._write_lock = asyncio.Lock()
        self._stage = RetrievalStage.IDLE

        if store is not None:
            store.ensure_dir()

    @classmethod
    def from_config(
        cls,
        workspace_root: Path | None,
        config: CodeScoutConfig,
        *,
        progress: ProgressSink | None = None,
    ) -> RetrievalOrchestrator:
        """Wire provider, cache store and filesystem source from config.

        Raises:
            WorkspaceError: No usable workspace root.
            ConfigError: Provider misconfigured or missing its credential.
            StorageError: Cache directory cannot be created.
        """
        if workspace_root is None or not workspace_root.is_dir():
            raise WorkspaceError.no_workspace(str(workspace_root) if workspace_root else None)
        root = workspace_root.resolve()
        provider = get_embedding_provider(config.embedding)
        cache_root = Path(config.cache.cache_root).expanduser() if config.cache.cache_root else None
        store = EmbeddingCacheStore(root, cache_root)
        source = WorkspaceFileSource(
            root,
            max_file_size_bytes=int(config.retrieval.max_file_size_mb * 1024 * 1024),
            excluded_dirs=config.retrieval.excluded_dirs,
        )
        return cls(
            root,
            source,
            provider,
            store,
            settings=config.retrieval,
            embedding=config.embedding,
            progress=progress,
        )

    @property
    def stage(self) -> RetrievalStage:
        """Stage of the most recent call."""
        return self._stage

    def close(self) -> None:
        """Drop in-memory state; the next call reloads the cache from disk."""
        self._cache = None
        self._stage = RetrievalStage.IDLE

    # --- Public API ---

    async def find_relevant_files(self, query: str, k: int | None = None) -> RetrievalResult:
        """Return the *k* files closest to *query* and their rendered text.

        Raises:
            ConfigError: No embedding provider (missing credential).
            WorkspaceError: Workspace root missing.
            DimensionMismatchError: Query and cached vectors disagree in length.
        """
        if self._provider is None or self._batch_client is None:
            raise ConfigError.missing_credential(
                "embedding", ["GEMINI_API_KEY", *FALLBACK_KEY_ENVS]
            )
        if self.workspace_root is None or not self.workspace_root.is_dir():
            raise WorkspaceError.no_workspace(
                str(self.workspace_root) if self.workspace_root else None
            )

        top_k = self.settings.top_k if k is None else k
        t0 = time.monotonic()
        loop = asyncio.get_running_loop()
        timer = loop.call_later(
            self.settings.progress_delay_sec,
            self._notify,
            NOTIFY_STILL_WORKING,
            {"elapsed_sec": self.settings.progress_delay_sec},
        )
        try:
            result = await self._run(query, top_k, self._provider, self._batch_client)
        except BaseException:
            self._stage = RetrievalStage.ERROR
            raise
        finally:
            timer.cancel()

        result.stats.elapsed_ms = round((time.monotonic() - t0) * 1000)
        log.info(
            "retrieval.done",
            candidates=result.stats.candidates,
            cache_hits=result.stats.cache_hits,
            embedded=result.stats.embedded,
            failed=result.stats.failed,
            returned=len(result.results),
            elapsed_ms=result.stats.elapsed_ms,
        )
        return result

    # --- Stages ---

    async def _run(
        self,
        query: str,
        k: int,
        provider: EmbeddingProvider,
        batch_client: BatchEmbeddingClient,
    ) -> RetrievalResult:
        self._stage = RetrievalStage.LISTING
        candidates = await self._list_candidates()
        stats = RetrievalStats(candidates=len(candidates))

        if not candidates:
            self._stage = RetrievalStage.DONE
            self._notify(NOTIFY_FILES_SELECTED, {"file_names": []})
            return RetrievalResult(context="", stats=stats)

        self._stage = RetrievalStage.DIFFING
        cache = await self._ensure_cache()
        model_tag = provider.model_tag
        reusable: dict[str, Vector] = {}
        stale: list[CandidateFile] = []
        for cand in candidates:
            entry = cache.get(cand.identity)
            if entry is not None and entry.is_valid_for(cand.fingerprint, model_tag):
                reusable[cand.identity] = list(entry.embedding)
            else:
                stale.append(cand)
        stats.cache_hits = len(reusable)
        log.debug("retrieval.diffed", reusable=len(reusable), stale=len(stale))

        self._stage = RetrievalStage.EMBEDDING
        fresh: dict[str, Vector] = {}
        if stale:
            fresh = await batch_client.embed_batch(
                [(cand.identity, cand.rendered_text) for cand in stale],
                TaskRole.DOCUMENT,
            )
        stats.embedded = len(fresh)
        stats.failed = len(stale) - len(fresh)

        self._stage = RetrievalStage.PERSISTING
        stats.pruned = await self._merge_and_persist(cache, stale, fresh, candidates, model_tag)

        self._stage = RetrievalStage.QUERY_EMBEDDING
        query_vec = await batch_client.embed_query(query)

        self._stage = RetrievalStage.RANKING
        pool: dict[str, Vector] = {}
        for cand in candidates:
            vec = reusable.get(cand.identity)
            if vec is None:
                vec = fresh.get(cand.identity)
            if vec is not None:
                pool[cand.identity] = vec
        ranked = rank(query_vec, pool, k)

        by_identity = {cand.identity: cand for cand in candidates}
        selected = [by_identity[r.identity] for r in ranked]
        file_names = [cand.display_name for cand in selected]
        self._notify(NOTIFY_FILES_SELECTED, {"file_names": file_names})
        log.info("retrieval.selected", files=file_names)

        self._stage = RetrievalStage.DONE
        return RetrievalResult(
            context="".join(cand.rendered_text for cand in selected).rstrip(),
            file_names=file_names,
            results=ranked,
            stats=stats,
        )

    async def _list_candidates(self) -> list[CandidateFile]:
        handles = await asyncio.to_thread(self._source.list_candidate_files, self.settings.glob)
        contents = await asyncio.gather(*(self._read(handle) for handle in handles))
        return [
            render_candidate(handle, content)
            for handle, content in zip(handles, contents, strict=True)
            if content is not None
        ]

    async def _read(self, handle: FileHandle) -> str | None:
        try:
            return await asyncio.to_thread(self._source.read_file, handle)
        except (OSError, ValueError) as e:
            log.warning("retrieval.read_failed", path=handle.relative_path, error=str(e))
            return None

    async def _ensure_cache(self) -> EmbeddingCache:
        """Load the persisted cache on first use in this session."""
        if self._cache is not None:
            return self._cache
        async with self._write_lock:
            if self._cache is None:
                if self._store is not None:
                    self._cache = await asyncio.to_thread(self._store.load)
                else:
                    self._cache = {}
            return self._cache

    async def _merge_and_persist(
        self,
        cache: EmbeddingCache,
        stale: Sequence[CandidateFile],
        fresh: dict[str, Vector],
        candidates: Sequence[CandidateFile],
        model_tag: str,
    ) -> int:
        """Merge fresh vectors into the cache and save it. Returns orphans pruned."""
        async with self._write_lock:
            changed = False
            for cand in stale:
                vec = fresh.get(cand.identity)
                if vec is None:
                    continue
                cache[cand.identity] = CacheEntry(
                    fingerprint=cand.fingerprint,
                    embedding=tuple(float(x) for x in vec),
                    model=model_tag,
                )
                changed = True

            pruned = 0
            if self.settings.prune_orphans:
                present = {cand.identity for cand in candidates}
                for identity in [i for i in cache if i not in present]:
                    del cache[identity]
                    pruned += 1
                changed = changed or pruned > 0

            if changed and self._store is not None:
                saved = await asyncio.to_thread(self._store.save, dict(cache))
                if not saved:
                    log.warning("retrieval.cache_not_persisted", entries=len(cache))
        return pruned

    def _notify(self, kind: str, payload: dict[str, Any]) -> None:
        if self._progress is None:
            return
        try:
            self._progress(kind, payload)
        except Exception as e:  # noqa: BLE001
            log.warning("retrieval.progress_sink_failed", kind=kind, error=str(e))
