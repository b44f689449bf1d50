"""Utility modules for Flashmoji."""

from flashmoji.utils.logging import (
    get_logger,
    get_log_buffer,
    configure_logging,
    LogLevel,
    LogEntry,
    LogBuffer,
    AppLogger,
    queue_logger,
    generation_logger,
    storage_logger,
    database_logger,
    api_logger,
)

__all__ = [
    "get_logger",
    "get_log_buffer",
    "configure_logging",
    "LogLevel",
    "LogEntry",
    "LogBuffer",
    "AppLogger",
    "queue_logger",
    "generation_logger",
    "storage_logger",
    "database_logger",
    "api_logger",
]
