"""Batched document embedding with per-batch failure isolation.

Requests are split into batches of at most ``batch_size`` texts and sent
concurrently, with at most ``max_concurrent_batches`` in flight. A batch
that fails is logged and its files are left out of the result: the caller
ranks fewer files rather than failing the whole query, and the files stay
stale in the cache so the next call retries them.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog

from codescout.config.constants import MAX_BATCH_SIZE
from codescout.core.errors import ConfigError, InternalError
from codescout.providers.base import EmbeddingProvider, TaskRole, Vector

log = structlog.get_logger()


def partition[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split *items* into consecutive chunks of at most *size*."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchEmbeddingClient:
    """Embeds (identity, text) pairs through an EmbeddingProvider."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        batch_size: int = MAX_BATCH_SIZE,
        max_concurrent_batches: int = 4,
    ) -> None:
        if batch_size < 1:
            raise ConfigError.invalid_value("embedding.batch_size", batch_size, "must be >= 1")
        if max_concurrent_batches < 1:
            raise ConfigError.invalid_value(
                "embedding.max_concurrent_batches", max_concurrent_batches, "must be >= 1"
            )
        self.provider = provider
        self.batch_size = batch_size
        self.max_concurrent_batches = max_concurrent_batches

    async def embed_batch(
        self,
        items: Sequence[tuple[str, str]],
        role: TaskRole = TaskRole.DOCUMENT,
    ) -> dict[str, Vector]:
        """Embed every (identity, text) pair that succeeds.

        Returns a mapping identity -> vector. Identities from failed batches
        are absent.
        """
        if not items:
            return {}

        batches = partition(items, self.batch_size)
        semaphore = asyncio.Semaphore(self.max_concurrent_batches)
        t0 = time.monotonic()

        async def run(index: int, batch: Sequence[tuple[str, str]]) -> dict[str, Vector]:
            async with semaphore:
                return await self._embed_one(index, batch, role)

        results = await asyncio.gather(*(run(i, b) for i, b in enumerate(batches)))

        merged: dict[str, Vector] = {}
        for part in results:
            merged.update(part)

        log.info(
            "batch.done",
            requested=len(items),
            embedded=len(merged),
            failed=len(items) - len(merged),
            batches=len(batches),
            elapsed_ms=round((time.monotonic() - t0) * 1000),
        )
        return merged

    async def _embed_one(
        self,
        index: int,
        batch: Sequence[tuple[str, str]],
        role: TaskRole,
    ) -> dict[str, Vector]:
        identities = [identity for identity, _ in batch]
        texts = [text for _, text in batch]
        try:
            vectors = await self.provider.batch_embed(texts, role)
        except Exception as e:  # noqa: BLE001
            log.error(
                "batch.failed",
                batch=index,
                size=len(batch),
                error_type=type(e).__name__,
                error=str(e),
            )
            return {}

        if len(vectors) != len(batch):
            log.error(
                "batch.size_mismatch",
                batch=index,
                requested=len(batch),
                returned=len(vectors),
            )
            return {}

        log.debug("batch.embedded", batch=index, size=len(batch))
        return dict(zip(identities, vectors, strict=True))

    async def embed_query(self, text: str) -> Vector:
        """Embed the query text. Errors propagate."""
        vector = await self.provider.embed(text, TaskRole.QUERY)
        if not vector:
            raise InternalError.unexpected("provider returned an empty query embedding")
        return vector
