"""Structured logging configuration with structlog.

Call ``configure_logging`` once at startup (the CLI does it before any
command runs); modules then log through ``structlog.get_logger(__name__)``:

    log = structlog.get_logger(__name__)
    log.info("grades_submitted", sheet_id=sheet.id, slot=2)
"""

import logging
import sys

import structlog
from structlog.typing import Processor

from panelgrade.config import LogFormat, Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog for the application.

    Args:
        settings: Configuration settings. Uses global settings if not provided.
    """
    settings = settings or get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == LogFormat.JSON:
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
