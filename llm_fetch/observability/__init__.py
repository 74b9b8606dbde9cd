"""
llm-fetch - Observability Module

Structured JSON logging with context injection.

Usage:
    from llm_fetch.observability import get_logger, setup_logging

    setup_logging(level="DEBUG", json_output=False)
    logger = get_logger(__name__)
"""

from .logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    TimedOperation,
    get_logger,
    setup_logging,
)

__all__ = [
    "JSONFormatter",
    "LogContext",
    "StructuredLogger",
    "TimedOperation",
    "get_logger",
    "setup_logging",
]
