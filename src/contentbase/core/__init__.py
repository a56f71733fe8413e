"""Core ContentBase utilities.

This module exports core utilities for use throughout the application.
"""

from contentbase.core.config import Settings, get_settings
from contentbase.core.exceptions import (
    AmbiguousSchemaChangeError,
    BadRequestError,
    ConflictError,
    ContentBaseError,
    MigrationError,
    NotFoundError,
    ServerError,
    ValidationIssue,
)
from contentbase.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "AmbiguousSchemaChangeError",
    "BadRequestError",
    "ConflictError",
    "ContentBaseError",
    "LoggingContext",
    "MigrationError",
    "NotFoundError",
    "ServerError",
    "Settings",
    "ValidationIssue",
    "bind_correlation_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_settings",
]
