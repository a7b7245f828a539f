"""
structlog setup for the API, the seed script and the validation harness.

Every event carries the request id bound by the tracing middleware. httpx
request lines from data-source probes are kept at WARNING so validation runs
do not flood the log.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from marinaops.config import get_settings

QUIET_LOGGERS = ("httpx", "httpcore")


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["severity"] = method_name.upper()
    return event_dict


def configure_logging() -> None:
    """JSON lines in production, console output in development and tests."""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not settings.testing)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_severity,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(request_id: str, **values: Any) -> None:
    """Reset the per-request context and bind ``request_id`` plus ``values``."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **values)


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)
