"""
Structured logging for docsig using structlog.

Library callers that never call :func:`configure_logging` get structlog's
defaults. The CLI configures it once so that events go to stderr and stdout
only carries command output.
"""

import logging
import sys
from typing import IO, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from docsig.core.config import get_settings


def configure_logging(*, stream: IO[str] | None = None, json_logs: bool | None = None) -> None:
    """
    Route docsig events to ``stream`` (stderr by default).

    Events render as key=value lines in development and as JSON lines
    elsewhere, unless ``json_logs`` forces one or the other.
    """
    settings = get_settings()
    if json_logs is None:
        json_logs = settings.environment != "development"

    processors: list[Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structured logger bound to the module ``name``."""
    return cast(FilteringBoundLogger, structlog.get_logger(logger=name))
