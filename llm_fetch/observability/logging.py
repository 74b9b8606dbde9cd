"""
llm-fetch - Structured Logging

Structured logging for the client library.

Features:
- JSON-formatted logs for easy parsing
- Correlation fields (request_id, provider, model) injected from contextvars
- Log level and format configurable via environment
- Sensitive data redaction

Usage:
    from llm_fetch.observability.logging import get_logger

    logger = get_logger(__name__)
    logger.warning("Skipping malformed event", provider="openai")

Output:
    {"timestamp": "2024-01-15T10:30:00Z", "level": "WARNING",
     "logger": "llm_fetch.streaming.parsers",
     "message": "Skipping malformed event", "provider": "openai"}
"""

import json
import logging
import os
import sys
import time
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

_log_context: ContextVar[Optional["LogContext"]] = ContextVar("llm_fetch_log_context", default=None)


@dataclass
class LogContext:
    """
    Logging context with correlation IDs.

    Task-safe using contextvars.
    """
    request_id: str = ""
    provider: str = ""
    model: str = ""
    endpoint: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def get_current(cls) -> Optional["LogContext"]:
        """Get current log context."""
        return _log_context.get()

    @classmethod
    def set_current(cls, ctx: "LogContext") -> Token:
        """Set current log context; returns a token for ``reset``."""
        return _log_context.set(ctx)

    @classmethod
    def reset(cls, token: Token):
        """Restore the context that was current before ``set_current``."""
        _log_context.reset(token)

    @classmethod
    def clear(cls):
        """Clear current log context."""
        _log_context.set(None)

    def update(self, **kwargs):
        """Update context fields."""
        for key, value in kwargs.items():
            if hasattr(self, key) and key != "extra":
                setattr(self, key, value)
            else:
                self.extra[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        if self.request_id:
            result["request_id"] = self.request_id
        if self.provider:
            result["provider"] = self.provider
        if self.model:
            result["model"] = self.model
        if self.endpoint:
            result["endpoint"] = self.endpoint
        result.update(self.extra)
        return result


# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_RECORD_ATTRS = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "asctime",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with automatic context injection.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456Z",
        "level": "INFO",
        "logger": "module.name",
        "message": "Log message",
        "request_id": "req_abc123",
        ... additional fields
    }
    """

    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "auth", "credential", "private_key",
    }

    def __init__(
        self,
        include_timestamp: bool = True,
        include_location: bool = False,
        redact_sensitive: bool = True,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_location = include_location
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.getMessage()

        if self.include_location:
            log_data["location"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = LogContext.get_current()
        if ctx:
            log_data.update(ctx.to_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_ATTRS:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        """Check if field name indicates sensitive data."""
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Structured logger wrapper with convenience methods.

    Keyword arguments other than exc_info/stack_info/stacklevel are
    attached to the record as extra fields.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, msg: str, *args, **kwargs):
        extra = dict(kwargs.pop("extra", {}))

        ctx = LogContext.get_current()
        if ctx:
            for key, value in ctx.to_dict().items():
                extra.setdefault(key, value)

        for key in list(kwargs):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        # A clashing key would make LogRecord raise KeyError
        for key in list(extra):
            if key in _RESERVED_RECORD_ATTRS:
                extra[f"{key}_"] = extra.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        """Log exception with traceback."""
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


_logging_configured = False


def setup_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = True,
    include_location: bool = False,
    redact_sensitive: bool = True,
) -> None:
    """
    Setup structured logging for the ``llm_fetch`` logger tree.

    Only the library's own loggers are touched, so applications keep
    control of the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON formatter (True) or standard formatter (False)
        include_location: Include filename:lineno in logs
        redact_sensitive: Redact sensitive fields like api keys
    """
    global _logging_configured

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger("llm_fetch")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_output:
        formatter = JSONFormatter(
            include_location=include_location,
            redact_sensitive=redact_sensitive,
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Configures the package logger from LOG_LEVEL / LOG_FORMAT on first use.
    """
    if not _logging_configured:
        level = os.getenv("LOG_LEVEL", "WARNING")
        json_output = os.getenv("LOG_FORMAT", "json").lower() == "json"
        setup_logging(level=level, json_output=json_output)

    return StructuredLogger(logging.getLogger(name))


class TimedOperation:
    """
    Context manager for timing operations.

    Usage:
        async with TimedOperation("post /chat/completions", logger) as timer:
            response = await client.post(...)
        # Logs: "post /chat/completions completed" with duration_ms
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        log_level: int = logging.DEBUG,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.logger = logger or get_logger("llm_fetch.timed_operation")
        self.log_level = log_level
        self.extra = extra or {}
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self) -> "TimedOperation":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        log_extra = {
            "operation": self.operation,
            "duration_ms": round(self.duration_ms, 2),
            **self.extra,
        }

        if exc_type:
            log_extra["error"] = str(exc_val)
            self.logger._log(logging.WARNING, f"{self.operation} failed", extra=log_extra)
        else:
            self.logger._log(self.log_level, f"{self.operation} completed", extra=log_extra)

    async def __aenter__(self) -> "TimedOperation":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
