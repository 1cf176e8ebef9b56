# ABOUTME: Logging configuration and structured logger helpers
# ABOUTME: loguru sinks for output, structlog bound loggers for application events

from .config import LoggingMode, configure_logging, detect_logging_mode, get_logging_status
from .utils import (
    LogContext,
    generate_operation_id,
    get_logger,
    log_extraction_step,
    with_async_operation_context,
    with_entry_context,
    with_pipeline_context,
)

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "detect_logging_mode",
    "get_logging_status",
    # Utilities
    "LogContext",
    "generate_operation_id",
    "get_logger",
    "log_extraction_step",
    "with_async_operation_context",
    "with_entry_context",
    "with_pipeline_context",
]
