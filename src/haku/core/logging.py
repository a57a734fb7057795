"""
Haku Logging - Structured logging for repositories and the applications using them.

Repositories log through ``get_logger(__name__)``; applications call
``configure_logging()`` once at startup to pick JSON (log aggregation) or
colored console output.

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=True,          │
        │                   service="todo-api")                      │
        │                                                             │
        │     ↓                                                       │
        │ structlog configured with processor chain:                  │
        │   1. TimeStamper (iso)                                      │
        │   2. add_log_level / add_logger_name                        │
        │   3. add_service_metadata                                   │
        │   4. elasticsearch_compatible (JSON only)                   │
        │   5. JSONRenderer (or ConsoleRenderer for dev)              │
        └────────────────────────────────────────────────────────────┘

        Usage Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ logger = get_logger(__name__).bind(table="todo")           │
        │ logger.info("entity_created", entity_id="0b6f…")           │
        │                                                             │
        │ Output (JSON format):                                       │
        │ {                                                           │
        │   "@timestamp": "2026-10-19T10:00:00Z",                    │
        │   "log.level": "info",                                     │
        │   "service.name": "todo-api",                              │
        │   "event": "entity_created",                               │
        │   "table": "todo",                                         │
        │   "entity_id": "0b6f…"                                     │
        │ }                                                           │
        └────────────────────────────────────────────────────────────┘

Examples:
    >>> from haku.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False, service="todo-api")
    >>> logger = get_logger(__name__)
    >>> logger.debug("schema_synchronized", table="todo")

Tags:
    logging, structlog, observability, elasticsearch, ecs, json-logging, haku-core
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from contextvars import Token
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "haku"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "haku",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # SQL echo and driver warnings go through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> Mapping[str, Token[Any]]:
    """Bind context to include in all subsequent logs.

    Returns the tokens :func:`reset_context` needs to restore the previous
    values.
    """
    return structlog.contextvars.bind_contextvars(**kwargs)


def reset_context(tokens: Mapping[str, Token[Any]]) -> None:
    """Restore the logging context from before :func:`bind_context`."""
    structlog.contextvars.reset_contextvars(**tokens)


class LogContext:
    """Context manager for scoped logging context.

    Nested scopes may rebind the same keys; leaving a scope restores the
    values of the enclosing one. Repositories wrap every operation in one.

    Example:
        async with LogContext(request_id="abc123"):
            await repo.create({"name": "Test Todo 1"})
        # request_id unbound here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: Mapping[str, Token[Any]] = {}

    def __enter__(self) -> LogContext:
        self._tokens = bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        reset_context(self._tokens)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "reset_context",
    "LogContext",
]
