"""Core module exports."""

from codescout.core.errors import (
    CodeScoutError,
    ConfigError,
    DimensionMismatchError,
    ErrorCode,
    InternalError,
    StorageError,
    WorkspaceError,
)
from codescout.core.logging import configure_logging, get_logger
from codescout.core.progress import console_sink, spinner, status

__all__ = [
    # Errors
    "CodeScoutError",
    "ConfigError",
    "DimensionMismatchError",
    "ErrorCode",
    "InternalError",
    "StorageError",
    "WorkspaceError",
    # Logging
    "configure_logging",
    "get_logger",
    # Progress
    "console_sink",
    "spinner",
    "status",
]
