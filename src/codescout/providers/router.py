"""Embedding provider selection from configuration."""

from __future__ import annotations

import os

import structlog

from codescout.config.models import EmbeddingConfig
from codescout.core.errors import ConfigError

from .base import EmbeddingProvider

log = structlog.get_logger()

# Checked after the configured api_key_env
FALLBACK_KEY_ENVS = ("GOOGLE_API_KEY",)


def resolve_api_key(config: EmbeddingConfig) -> str | None:
    """Return the API key from config, the configured env var, or fallbacks."""
    if config.api_key is not None:
        value = config.api_key.get_secret_value().strip()
        if value:
            return value
    for env_name in (config.api_key_env, *FALLBACK_KEY_ENVS):
        value = os.getenv(env_name, "").strip()
        if value:
            return value
    return None


def get_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    """Build the embedding provider named by *config*.

    Raises:
        ConfigError: Remote provider without a credential, or unknown provider.
    """
    if config.provider == "gemini":
        api_key = resolve_api_key(config)
        if not api_key:
            raise ConfigError.missing_credential(
                "gemini", [config.api_key_env, *FALLBACK_KEY_ENVS]
            )
        from .gemini import DEFAULT_MODEL, GeminiEmbeddingProvider

        provider: EmbeddingProvider = GeminiEmbeddingProvider(
            api_key=api_key, model=config.model or DEFAULT_MODEL
        )
    elif config.provider == "local":
        from .local import DEFAULT_MODEL as LOCAL_DEFAULT_MODEL
        from .local import LocalEmbeddingProvider

        provider = LocalEmbeddingProvider(model=config.model or LOCAL_DEFAULT_MODEL)
    else:
        raise ConfigError.invalid_value(
            "embedding.provider", config.provider, "expected 'gemini' or 'local'"
        )

    log.debug("embedding.provider_selected", provider=provider.name, model=provider.model)
    return provider
