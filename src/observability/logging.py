"""
Structured logging configuration using structlog.

Provides JSON logs shaped for Cloud Logging in production and pretty
console logs for development. Request handlers get an explicit bound
logger from request_logger() and pass it down; nothing rebinds a global.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from src.config.settings import get_settings
from src.observability.tracing import add_trace_context, current_trace_fields

# Cloud Logging reads these keys from structured stdout
_CLOUD_LOGGING_KEYS = {
    "event": "message",
    "level": "severity",
}


def rename_for_cloud_logging(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor mapping structlog keys to Cloud Logging keys."""
    for src_key, dst_key in _CLOUD_LOGGING_KEYS.items():
        if src_key in event_dict:
            value = event_dict.pop(src_key)
            event_dict[dst_key] = value.upper() if dst_key == "severity" else value
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    In production: JSON logs with Cloud Logging field names
    In development: Pretty console output with colors

    Usage:
        setup_logging()
        logger = structlog.get_logger()
        logger.info("Fetched chats", source_id="abc123", count=42)
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            rename_for_cloud_logging,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Set log levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


def request_logger(
    service_name: str,
    request_id: str | None = None,
    project_id: str | None = None,
) -> structlog.stdlib.BoundLogger:
    """
    Build the logger for one invocation.

    Carries the Cloud Logging service label, the request id and, when a
    span is active and a project is known, the trace correlation fields.
    """
    log = structlog.get_logger("chat_watcher").bind(
        **{"logging.googleapis.com/labels": {"service": service_name}}
    )
    if request_id:
        log = log.bind(request_id=request_id)
    if project_id:
        log = log.bind(**current_trace_fields(project_id))
    return log
