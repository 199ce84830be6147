"""Embedding provider abstraction layer."""

from .base import EmbeddingProvider, TaskRole, Vector
from .router import get_embedding_provider

__all__ = ["EmbeddingProvider", "TaskRole", "Vector", "get_embedding_provider"]
