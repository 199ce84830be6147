"""Retrieval module - incremental embedding cache and relevance ranking."""

from codescout.retrieval.batching import BatchEmbeddingClient
from codescout.retrieval.cache import CacheEntry, EmbeddingCache, EmbeddingCacheStore
from codescout.retrieval.hashing import fingerprint, workspace_key
from codescout.retrieval.models import (
    CandidateFile,
    FileHandle,
    ProgressSink,
    RankedResult,
    RetrievalResult,
    RetrievalStage,
    RetrievalStats,
)
from codescout.retrieval.orchestrator import RetrievalOrchestrator
from codescout.retrieval.ranking import euclidean_distance, rank
from codescout.retrieval.sources import FileSource, WorkspaceFileSource, render_candidate

__all__ = [
    "BatchEmbeddingClient",
    "CacheEntry",
    "CandidateFile",
    "EmbeddingCache",
    "EmbeddingCacheStore",
    "FileHandle",
    "FileSource",
    "ProgressSink",
    "RankedResult",
    "RetrievalOrchestrator",
    "RetrievalResult",
    "RetrievalStage",
    "RetrievalStats",
    "WorkspaceFileSource",
    "euclidean_distance",
    "fingerprint",
    "rank",
    "render_candidate",
    "workspace_key",
]
