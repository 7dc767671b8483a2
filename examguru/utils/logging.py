"""structlog setup for ExamGuru.

One processor chain is shared by structlog loggers and by the standard
``logging`` bridge, so uvicorn, httpx and the openai SDK print in the same
format as application events.  Only the final renderer changes: JSON lines
in production, a console renderer everywhere else.

Request-scoped fields (``request_id``, ``path``) are carried in context vars;
see :func:`request_context`.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# These log every HTTP round trip at INFO; one exam generation is several.
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai")


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", "examguru")
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog and route stdlib logging through it.

    ``json_output`` selects machine-readable output; callers derive it from
    ``APP_ENV``.  Third-party HTTP client loggers are held at WARNING unless
    *log_level* is DEBUG.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors()
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    chatty_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger tagged with *name*, configuring defaults if needed."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


@contextmanager
def request_context(request_id: str, **fields: Any) -> Iterator[None]:
    """Bind *request_id* (and *fields*) to every log line inside the block."""
    with structlog.contextvars.bound_contextvars(request_id=request_id, **fields):
        yield
