"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODESCOUT__SECTION__KEY)
3. Workspace YAML (<workspace>/.codescout/config.yaml)
4. Global YAML (~/.config/codescout/config.yaml)
5. Built-in defaults (this file)

Examples:
    CODESCOUT__LOGGING__LEVEL=DEBUG
    CODESCOUT__EMBEDDING__PROVIDER=local
    CODESCOUT__RETRIEVAL__TOP_K=8
    CODESCOUT__RETRIEVAL__GLOB="**/*.dart"
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator

from codescout.config.constants import MAX_BATCH_SIZE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ProviderName = Literal["gemini", "local"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODESCOUT__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every batch and cache decision.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration.

    Env vars:
        CODESCOUT__EMBEDDING__PROVIDER: "gemini" (remote) or "local" (fastembed)
        CODESCOUT__EMBEDDING__MODEL: Override the provider's default model
        CODESCOUT__EMBEDDING__API_KEY: API key (prefer GEMINI_API_KEY instead)
        CODESCOUT__EMBEDDING__BATCH_SIZE: Texts per embedding request
        CODESCOUT__EMBEDDING__MAX_CONCURRENT_BATCHES: Outstanding requests
    """

    provider: ProviderName = Field(
        default="gemini",
        description="Embedding backend. 'local' needs no credential but downloads a model.",
    )
    model: str | None = Field(
        default=None,
        description="Model name. Changing it invalidates every cached embedding.",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Remote API key. Falls back to the api_key_env variable.",
    )
    api_key_env: str = Field(
        default="GEMINI_API_KEY",
        description="Environment variable holding the API key.",
    )
    batch_size: int = Field(
        default=MAX_BATCH_SIZE,
        description="Texts per embedding request. Bounded by the remote API limit.",
    )
    max_concurrent_batches: int = Field(
        default=4,
        description="Max outstanding batch requests. "
        "RISK: Higher values trade latency for rate-limit errors.",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if not (1 <= v <= MAX_BATCH_SIZE):
            raise ValueError(f"batch_size must be 1-{MAX_BATCH_SIZE}, got {v}")
        return v

    @field_validator("max_concurrent_batches")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_concurrent_batches must be >= 1, got {v}")
        return v


class RetrievalConfig(BaseModel):
    """Retrieval behaviour.

    Env vars:
        CODESCOUT__RETRIEVAL__GLOB: Glob selecting candidate files
        CODESCOUT__RETRIEVAL__TOP_K: Files returned per query
        CODESCOUT__RETRIEVAL__PROGRESS_DELAY_SEC: Delay before "still working"
        CODESCOUT__RETRIEVAL__PRUNE_ORPHANS: Drop cache entries of deleted files
    """

    glob: str = Field(
        default="**/*",
        description="Glob (relative to the workspace root) selecting candidate files.",
    )
    top_k: int = Field(
        default=5,
        description="Number of files returned per query.",
    )
    progress_delay_sec: float = Field(
        default=5.0,
        description="Emit a 'still working' notification after this many seconds.",
    )
    prune_orphans: bool = Field(
        default=False,
        description="Remove cache entries for files no longer matched by the glob. "
        "Leave off when several globs share one workspace cache.",
    )
    max_file_size_mb: float = Field(
        default=1.0,
        description="Skip files larger than this (MB).",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: [
            ".git",
            ".hg",
            ".svn",
            ".venv",
            "node_modules",
            "__pycache__",
            "build",
            ".dart_tool",
        ],
        description="Directory names never descended into.",
    )

    @field_validator("top_k")
    @classmethod
    def validate_top_k(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"top_k must be >= 1, got {v}")
        return v

    @field_validator("progress_delay_sec")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"progress_delay_sec must be > 0, got {v}")
        return v


class CacheConfig(BaseModel):
    """Embedding cache storage.

    Env vars:
        CODESCOUT__CACHE__CACHE_ROOT: Directory holding per-workspace cache files
    """

    cache_root: str | None = Field(
        default=None,
        description="Cache directory. Default: <system temp dir>/codescout.",
    )


class CodeScoutConfig(BaseModel):
    """Root configuration for codescout."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
