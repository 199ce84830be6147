"""Gemini embedding provider."""

from __future__ import annotations

from collections.abc import Sequence

from google import genai
from google.genai import types

from .base import EmbeddingProvider, TaskRole, Vector

DEFAULT_MODEL = "gemini-embedding-001"
TOKEN_COUNT_MODEL = "gemini-2.0-flash"

_TASK_TYPES = {
    TaskRole.DOCUMENT: "RETRIEVAL_DOCUMENT",
    TaskRole.QUERY: "RETRIEVAL_QUERY",
}


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Gemini embed_content API wrapper."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        http_options: types.HttpOptions | None = None,
    ) -> None:
        """Initialize Gemini embedding provider.

        Args:
            api_key: Gemini API key.
            model: Embedding model name (default: gemini-embedding-001).
            http_options: Optional transport options (timeouts, base URL).
        """
        self._client = genai.Client(api_key=api_key, http_options=http_options)
        self.model = model

    async def batch_embed(self, texts: Sequence[str], role: TaskRole) -> list[Vector]:
        response = await self._client.aio.models.embed_content(
            model=self.model,
            contents=list(texts),
            config=types.EmbedContentConfig(task_type=_TASK_TYPES[role]),
        )
        return [list(e.values or []) for e in response.embeddings or []]

    async def count_tokens(self, text: str) -> int:
        response = await self._client.aio.models.count_tokens(
            model=TOKEN_COUNT_MODEL,
            contents=text,
        )
        return response.total_tokens or 0
