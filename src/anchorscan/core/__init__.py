"""Core module exports."""

from anchorscan.core.errors import (
    AnchorScanError,
    ConfigError,
    DocumentFormatError,
    EntityLookupError,
    EntrypointNotFoundError,
    ErrorCode,
    InternalError,
    SourceReadError,
)
from anchorscan.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from anchorscan.core.progress import progress, spinner, status, task

__all__ = [
    # Errors
    "AnchorScanError",
    "ConfigError",
    "DocumentFormatError",
    "EntityLookupError",
    "EntrypointNotFoundError",
    "ErrorCode",
    "InternalError",
    "SourceReadError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "progress",
    "spinner",
    "status",
    "task",
]
