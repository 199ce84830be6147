"""Local ONNX embedding provider backed by fastembed.

Needs no credential; the model (~67 MB) is downloaded on first use into
fastembed's cache directory. Inference is CPU-bound, so calls are pushed
to a worker thread to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog

from .base import EmbeddingProvider, TaskRole, Vector

log = structlog.get_logger()

DEFAULT_MODEL = "BAAI/bge-small-en-v1.5"
MAX_LENGTH = 512


class LocalEmbeddingProvider(EmbeddingProvider):
    """fastembed TextEmbedding wrapper."""

    name = "local"

    def __init__(self, model: str = DEFAULT_MODEL) -> None:
        self.model = model
        self._model: Any = None
        self._load_lock = threading.Lock()

    async def batch_embed(self, texts: Sequence[str], role: TaskRole) -> list[Vector]:
        return await asyncio.to_thread(self._embed_sync, list(texts), role)

    def _embed_sync(self, texts: list[str], role: TaskRole) -> list[Vector]:
        model = self._ensure_model()
        if role is TaskRole.QUERY:
            raw = list(model.query_embed(texts))
        else:
            raw = list(model.passage_embed(texts, batch_size=len(texts) or 1))
        return [np.asarray(vec, dtype=np.float32).tolist() for vec in raw]

    def _ensure_model(self) -> Any:
        """Lazy-load the embedding model."""
        with self._load_lock:
            if self._model is None:
                from fastembed import TextEmbedding

                threads = max(1, (os.cpu_count() or 2) // 2)
                self._model = TextEmbedding(
                    model_name=self.model,
                    threads=threads,
                    max_length=MAX_LENGTH,
                )
                log.info("local_embedding.model_loaded", model=self.model, threads=threads)
            return self._model
