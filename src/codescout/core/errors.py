"""codescout error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Retrieval
- 4xxx: Storage
- 9xxx: Internal

Only conditions that make a retrieval result meaningless are raised
(missing credential, missing workspace, vector dimension mismatch,
cache directory creation). Cache corruption, cache write failures and
individual batch failures are logged and recovered from at the call site.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    EMBED_CREDENTIAL_MISSING = 2004

    # Retrieval (3xxx)
    WORKSPACE_MISSING = 3001
    DIMENSION_MISMATCH = 3002

    # Storage (4xxx)
    STORAGE_DIR_FAILED = 4001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CodeScoutError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeScoutError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_credential(cls, provider: str, env_vars: list[str]) -> "ConfigError":
        names = ", ".join(env_vars)
        return cls(
            code=ErrorCode.EMBED_CREDENTIAL_MISSING,
            message=f"No API key for embedding provider '{provider}'. Set one of: {names}",
            details={"provider": provider, "env_vars": env_vars},
        )


class WorkspaceError(CodeScoutError):
    """Retrieval needs an open workspace root."""

    @classmethod
    def no_workspace(cls, root: str | None) -> "WorkspaceError":
        where = root if root is not None else "<none>"
        return cls(
            code=ErrorCode.WORKSPACE_MISSING,
            message=f"No workspace folder found: {where}",
            details={"root": root},
        )


class DimensionMismatchError(CodeScoutError):
    """Query and candidate vectors of different lengths."""

    @classmethod
    def between(
        cls, expected: int, actual: int, identity: str | None = None
    ) -> "DimensionMismatchError":
        subject = f"candidate '{identity}'" if identity else "candidate"
        return cls(
            code=ErrorCode.DIMENSION_MISMATCH,
            message=f"Embedding dimension mismatch: query has {expected}, {subject} has {actual}",
            details={"expected": expected, "actual": actual, "identity": identity},
        )


class StorageError(CodeScoutError):
    """Cache storage errors that cannot be degraded."""

    @classmethod
    def directory_failed(cls, path: str, reason: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_DIR_FAILED,
            message=f"Failed to create a secure cache directory at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class InternalError(CodeScoutError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
