"""Data types shared by the retrieval pipeline."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ProgressSink = Callable[[str, dict[str, Any]], None]
"""notify(kind, payload); fire-and-forget."""


class RetrievalStage(Enum):
    """Orchestrator state for the call in flight."""

    IDLE = "idle"
    LISTING = "listing"
    DIFFING = "diffing"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    QUERY_EMBEDDING = "query_embedding"
    RANKING = "ranking"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class FileHandle:
    """A file as enumerated by a FileSource."""

    identity: str  # absolute POSIX path
    display_name: str  # file name only
    relative_path: str  # POSIX path relative to the workspace root


@dataclass(frozen=True, slots=True)
class CandidateFile:
    """A listed file rendered into identity-bearing text, fixed for one call."""

    identity: str
    display_name: str
    relative_path: str
    rendered_text: str
    fingerprint: str


@dataclass(frozen=True, slots=True)
class RankedResult:
    """A candidate's distance to the query (smaller is more relevant)."""

    identity: str
    distance: float


@dataclass(slots=True)
class RetrievalStats:
    """Counters for a single retrieval call."""

    candidates: int = 0
    cache_hits: int = 0
    embedded: int = 0
    failed: int = 0
    pruned: int = 0
    elapsed_ms: int = 0


@dataclass(slots=True)
class RetrievalResult:
    """Outcome of find_relevant_files()."""

    context: str
    file_names: list[str] = field(default_factory=list)
    results: list[RankedResult] = field(default_factory=list)
    stats: RetrievalStats = field(default_factory=RetrievalStats)
