#!/usr/bin/env python3
"""
Structured logging for the gallery API and its cache.

Every event is a structlog key/value record. Three things are added on top
of the stock processors:

- request_id: copied from a context variable that RequestIDMiddleware sets
  from (or generates for) the X-Request-ID header, so cache events logged
  deep inside CacheManager still tie back to one HTTP request
- stage: a short tag naming where in the cache flow the event happened
  ("2.1" L1 lookup, "3.1" response cache HIT/MISS, "REDIS.GET", "SWEEP.1");
  `log_stage` is the shorthand for emitting one
- redaction: bearer tokens and email addresses are masked in the event text,
  since Authorization values feed per-user cache keys

Output is JSON (LOG_FORMAT=json, for aggregation) or coloured console lines
(LOG_FORMAT=console, for local runs and tests).
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from gallery_cache.core.config.settings import get_settings

# Context variable for the request ID of the request being served
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_BEARER_RE = re.compile(r"\b[Bb]earer\s+[A-Za-z0-9._~+/=-]+")
_EMAIL_RE = re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b")


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach the current request ID, when a request is being served."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """UTC ISO-8601 timestamp with a Z suffix."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Mask credentials in the event text.

    ``Bearer abc.def`` becomes ``Bearer [REDACTED]`` and email addresses
    become ``[EMAIL]``. Only the message is rewritten; structured fields are
    left alone (cache keys carry hashed identities, never raw ones).
    """
    message = event_dict.get("event", "")

    if isinstance(message, str):
        message = _BEARER_RE.sub("Bearer [REDACTED]", message)
        message = _EMAIL_RE.sub("[EMAIL]", message)
        event_dict["event"] = message

    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Upper-case the level so JSON output matches the stdlib names."""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Called once by the application factory. Arguments left as None fall
    back to LOG_LEVEL / LOG_FORMAT from settings.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,  # event text only
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage="2.1")
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """Bind a request ID to the current context (RequestIDMiddleware)."""
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    """Request ID of the request being served, or None outside one."""
    return request_id_ctx.get()


def clear_request_id() -> None:
    """Unbind the request ID once the response has been sent."""
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (e.g., "2.1", "SWEEP.1")
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, "2.1", "L1 cache hit", cache_key="abc123")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=stage, **kwargs)
