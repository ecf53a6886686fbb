"""
Structured logging using structlog.

JSON lines in production, colored console in development. Every log line
emitted while an analysis runs carries the run's id and target URL through
structlog contextvars, so the interleaved output of concurrent analyzers
can be grouped per run.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import structlog
from structlog.types import EventDict

from seo_inspector.core.config import Settings, get_settings

SEVERITY_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}

# HTTP client chatter from link probing and site-file fetches
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore")


def add_severity(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    """Map structlog levels to GCP/Datadog severity levels."""
    event_dict["severity"] = SEVERITY_LEVELS.get(method, "INFO")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_severity,
    ]

    if settings.LOG_FORMAT == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if settings.ENV != "development":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def analysis_log_context(target: str, categories: Sequence[str] = ()) -> Iterator[str]:
    """
    Bind run_id and target (plus the requested categories, when a subset
    was asked for) to every log line inside the block. Yields the run_id.
    """
    run_id = uuid.uuid4().hex[:12]
    bound: dict[str, Any] = {"run_id": run_id, "target": target}
    if categories:
        bound["categories"] = list(categories)
    with structlog.contextvars.bound_contextvars(**bound):
        yield run_id
