"""
Structured logging for dockhand.

One call to ``configure_logging`` at process start sets up structlog with a
processor chain that adds timestamp, level, logger name and service name.
Lines go through the standard library logger of the same name to stderr, so
command output on stdout stays clean.  JSON when stderr is not a TTY
(containers, log shippers), a coloured console renderer otherwise.

Usage Flow:
    ::

        configure_logging(level="INFO")
        logger = get_logger(__name__)
        logger.info("workload.started", workload="web", attempts=2)

        {"@timestamp": "...", "log.level": "info",
         "service.name": "dockhand", "event": "workload.started",
         "workload": "web", "attempts": 2}

    Request-scoped fields (actor, operation, target) are bound with
    ``LogContext`` and merged into every line logged inside it.

Tags:
    logging, structlog, observability, dockhand

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "dockhand"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", SERVICE_NAME)
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp and level to ``@timestamp`` and ``log.level``."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """Configure structured logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: True for JSON, False for console, None for JSON unless
            stderr is a TTY
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()
    log_level = getattr(logging, level.upper())

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service_metadata,
    ]
    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


class LogContext:
    """Binds fields to every line logged inside an ``async with`` block.

    Example:
        async with LogContext(actor="u1", operation="stop", target="web"):
            logger.info("operation.requested")
    """

    def __init__(self, **fields: Any):
        self._fields = fields

    async def __aenter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._fields)
        return self

    async def __aexit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self._fields)


__all__ = ["configure_logging", "get_logger", "LogContext"]
