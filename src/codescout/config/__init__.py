"""Config module exports."""

from codescout.config.loader import load_config
from codescout.config.models import (
    CacheConfig,
    CodeScoutConfig,
    EmbeddingConfig,
    LoggingConfig,
    RetrievalConfig,
)

__all__ = [
    "load_config",
    "CacheConfig",
    "CodeScoutConfig",
    "EmbeddingConfig",
    "LoggingConfig",
    "RetrievalConfig",
]
