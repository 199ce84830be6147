"""Embedding provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

Vector = list[float]


class TaskRole(str, Enum):
    """How the text will be used; retrieval models embed the two asymmetrically."""

    DOCUMENT = "document"
    QUERY = "query"


class EmbeddingProvider(ABC):
    """Minimal interface for text embedding.

    Providers can be swapped via CODESCOUT__EMBEDDING__PROVIDER.
    """

    name: str  # Provider identifier, e.g. "gemini"
    model: str  # The embedding model name

    @property
    def model_tag(self) -> str:
        """Version tag stored with each cache entry.

        Entries carrying a different tag are recomputed, so vectors from
        different models never end up in the same ranking.
        """
        return f"{self.name}:{self.model}"

    @abstractmethod
    async def batch_embed(self, texts: Sequence[str], role: TaskRole) -> list[Vector]:
        """Embed multiple texts in a single request.

        Args:
            texts: Texts to embed.
            role: Document or query embedding.

        Returns:
            One vector per input text, in input order.
        """
        raise NotImplementedError

    async def embed(self, text: str, role: TaskRole) -> Vector:
        """Embed a single text string."""
        vectors = await self.batch_embed([text], role)
        return vectors[0] if vectors else []

    async def count_tokens(self, text: str) -> int:
        """Count tokens the provider would charge for *text*."""
        raise NotImplementedError(f"{type(self).__name__} does not count tokens")
