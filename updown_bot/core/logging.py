"""Structured logging foundation for the up/down bot.

Provides JSON logging (prod) or colored console (dev) via structlog.
Includes an audit trail logger for order submissions and rejections.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, cast

import structlog


def _configure_structlog() -> None:
    """Configure structlog based on UPDOWN_ENV and UPDOWN_LOG_LEVEL."""
    env = os.environ.get("UPDOWN_ENV", "development")
    log_level_name = os.environ.get("UPDOWN_LOG_LEVEL", "INFO").upper()
    min_level = logging.getLevelName(log_level_name)
    if not isinstance(min_level, int):
        min_level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if env == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _LOG_LEVELS["current"] = log_level_name


_LOG_LEVELS: dict[str, str] = {"current": "INFO"}
_CONFIGURED = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named logger instance.

    Args:
        name: Logger name (typically module __name__).

    Returns:
        Configured structlog logger.
    """
    global _CONFIGURED
    if not _CONFIGURED:
        _configure_structlog()
        _CONFIGURED = True

    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def get_audit_logger() -> structlog.stdlib.BoundLogger:
    """Get the audit trail logger for order submissions.

    All audit events are logged with event_type for downstream filtering.
    """
    return get_logger("updown.audit")


def log_order_event(
    action: str,
    order_id: str | None,
    **kwargs: Any,
) -> None:
    """Log an order lifecycle event to the audit trail.

    Args:
        action: Event type (submit, submitted, rejected, simulated).
        order_id: Exchange or simulated order id, None before one exists.
        **kwargs: Additional context (token, price, size, reason, etc).
    """
    logger = get_audit_logger()
    logger.info(
        "order_event",
        event_type="audit",
        action=action,
        order_id=order_id,
        **kwargs,
    )
