"""
Structured logging for audit-tables.

Thin structlog setup shared by the library and the CLI. Library modules call
``get_logger(__name__)`` and log events with keyword fields; the CLI calls
``configure_logging()`` once per command.

Examples:
    >>> from audit_tables.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("statements_planned", table="users", count=5)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_PACKAGE = "audit_tables"
_STATEMENT_PREVIEW = 120


def _service_tagger(service: str) -> Processor:
    def tag(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return tag


def _shorten_statement(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Keep generated DDL in log lines to its first line."""
    sql = event_dict.get("statement")
    if isinstance(sql, str):
        first = sql.split("\n", 1)[0]
        if len(first) > _STATEMENT_PREVIEW:
            first = first[:_STATEMENT_PREVIEW] + "..."
        event_dict["statement"] = first
    return event_dict


class _StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time.

    Test runners and CLI harnesses swap ``sys.stderr`` and close the old
    stream afterwards; a handler holding the original stream would fail.
    """

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "audit-tables",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the library and CLI.

    Events go through the stdlib ``audit_tables`` logger, which writes to
    stderr; stdout is left for generated SQL.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines (True), console (False), or JSON unless stderr is a tty (None)
        service: Value of the ``service`` field on every event
        add_timestamp: Add an ISO ``timestamp`` field
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_tagger(service),
        _shorten_statement,
    ]

    if add_timestamp:
        processors.insert(1, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = _StderrHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger(_PACKAGE)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.propagate = False


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(table="users", audit_table="audit_users"):
            logger.info("audit_status_probed")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
