"""Structured logging utilities for Frost."""

import logging
import sys
from typing import Any

import structlog

# Event keys that must never reach a log sink
SECRET_KEYS = frozenset({"access_token", "client_secret", "device_code", "accessToken"})


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor masking credential material in event context."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging(level: str = "INFO", format: str = "console", output: str = "stderr") -> None:
    """Configure structured logging for Frost.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        output: Output destination (stdout or stderr)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = sys.stdout if output == "stdout" else sys.stderr

    # boto3/botocore log through the standard library
    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)
    logging.getLogger("botocore").setLevel(max(log_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if format == "json":
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def log_error(
    logger: structlog.BoundLogger,
    error: BaseException,
    operation: str | None = None,
    **kwargs: Any,
) -> None:
    """Log a failure as ``<operation>_failed`` with the exception attached.

    Args:
        logger: Logger to emit on
        error: The failure
        operation: Short snake_case name of what failed
        **kwargs: Extra event context
    """
    event = f"{operation}_failed" if operation else "unexpected_error"
    logger.error(
        event,
        error_type=type(error).__name__,
        error=str(error) or None,
        exc_info=True,
        **kwargs,
    )
