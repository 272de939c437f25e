"""
Docshape Logging - Structured logging for the decode pipeline.

Standardized structlog configuration shared by the library and the CLI.
The library itself never configures logging; applications call
``configure_logging()`` once at startup and the pipeline's events
(registration, resolution, decode failures) flow into their setup.

Manifesto:
    Decode failures in batch jobs are only useful if they can be traced to a
    record and a field. Events may carry a DocshapeError as ``error=``; it is
    rendered through ``to_dict()`` so the stage, path, shape and field land
    in the log record as data.

    - **Structures:** JSON output for log aggregation
    - **Correlates:** record/batch identifiers via bound context
    - **Separates:** logs go to stderr, stdout stays free for decoded output

Examples:
    >>> from docshape.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("polymorphic_resolved", interface="Block", shape="TextBlock")
    >>> with LogContext(source="posts.jsonl", line=17):
    ...     decoder.try_decode(raw, Post)

Tags:
    logging, structlog, observability, json-logging, docshape

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from docshape.core.errors import DocshapeError

if TYPE_CHECKING:
    from docshape.core.settings import DocshapeSettings

_SERVICE_NAME = "docshape"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _render_docshape_error(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Expand ``error=<DocshapeError>`` into the error's dict form."""
    error = event_dict.get("error")
    if isinstance(error, DocshapeError):
        event_dict["error"] = error.to_dict()
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp/level to their ECS names for JSON output."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "docshape",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging on stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if
            stderr is not a tty)
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO UTC timestamp
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service
    numeric_level = getattr(logging, level.upper())

    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _add_service_metadata,
        _render_docshape_error,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def configure_from_settings(settings: DocshapeSettings | None = None, *, level: str | None = None) -> None:
    """Apply ``log_level``/``log_format`` from settings; ``level`` overrides the level."""
    if settings is None:
        from docshape.core.settings import get_settings

        settings = get_settings()
    configure_logging(level=level or settings.log_level, json_format=settings.log_format == "json")


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to every subsequent event of this thread/task.

    Example:
        bind_context(batch="2024-01-15", record=42)
        decoder.try_decode(raw, Post)  # decode_failed carries batch and record
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped :func:`bind_context`; keys are unbound on exit."""

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
