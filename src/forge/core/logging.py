"""Structured logging infrastructure for Forge.

Provides structured logging using structlog with a component name bound to
every entry. Supports console output on stderr and JSON output to a rotating
log file.

Example usage:
    from forge.core.logging import configure_logging, get_logger

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("recovery")

    # Log with structured fields
    logger.info("retry.scheduled", attempt=2, delay_seconds=2.0)

    # Bind context for a scope
    provider_logger = logger.bind(provider="anthropic")
    provider_logger.warning("circuit_breaker.rejected")
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field name fragments whose values must never reach a log sink
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "token",
    "secret",
    "password",
    "credential",
    "auth",
    "bearer",
    "authorization",
})

_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """Get the currently configured log file path.

    Returns:
        The Path to the current log file, or None if file logging is not enabled.
    """
    return _current_log_path


def _sanitize_value(key: str, value: Any) -> Any:
    """Return "[REDACTED]" for values stored under a sensitive key."""
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields.

    Nested dictionaries (for example an error's ``details``) are sanitized one
    level deep.
    """
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {
                k: _sanitize_value(str(k), v) for k, v in value.items()
            }
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class ForgeLogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is fetched on every call so that loggers
    created at import time still honour a later ``configure_logging()``.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    @property
    def component(self) -> str:
        return self._component

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> ForgeLogger:
        """Create a new logger with additional bound context.

        Args:
            **context: Additional context to bind (e.g., provider, breaker).

        Returns:
            A new ForgeLogger with the additional context bound.
        """
        new_logger = ForgeLogger.__new__(ForgeLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback.

        Should be called from within an exception handler.
        """
        self._get_logger().exception(event, **kw)


def _shared_processors(include_timestamps: bool) -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]
    if include_timestamps:
        processors.append(_add_timestamp)
    return processors


def _get_processors(include_timestamps: bool) -> list[Processor]:
    """Build the structlog processor chain.

    Rendering is left to each handler's formatter, so the chain ends by handing
    the event dict over to stdlib logging.
    """
    return [
        structlog.stdlib.filter_by_level,
        *_shared_processors(include_timestamps),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _make_formatter(
    renderer: Processor,
    include_timestamps: bool,
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_shared_processors(include_timestamps),
    )


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 50,
    backup_count: int = 5,
    include_timestamps: bool = True,
) -> None:
    """Configure Forge structured logging.

    This should be called once at application startup before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: Output format - "json" for structured, "console" for human-readable,
            "both" for console to stderr and JSON to file (requires file_path).
        file_path: Optional file path for log output. Required if format="both".
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps in log entries.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    global _current_log_path

    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            _make_formatter(structlog.dev.ConsoleRenderer(colors=True), include_timestamps)
        )
        handlers.append(console_handler)

    if format in ("json", "both"):
        json_formatter = _make_formatter(
            structlog.processors.JSONRenderer(), include_timestamps
        )
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            _current_log_path = file_path
            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(json_formatter)
            handlers.append(file_handler)
        else:
            json_handler = logging.StreamHandler(sys.stdout)
            json_handler.setLevel(log_level)
            json_handler.setFormatter(json_formatter)
            handlers.append(json_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    # cache_logger_on_first_use=False keeps import-time loggers in sync with
    # whatever configuration is active when they emit.
    structlog.configure(
        processors=_get_processors(include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> ForgeLogger:
    """Get a Forge logger for a component.

    Args:
        component: The component name (e.g., "recovery", "circuit_breaker").
        **initial_context: Additional context to bind.

    Returns:
        A ForgeLogger instance bound to the component.
    """
    return ForgeLogger(component, **initial_context)


__all__ = [
    "ForgeLogger",
    "SENSITIVE_PATTERNS",
    "configure_logging",
    "get_current_log_path",
    "get_logger",
]
