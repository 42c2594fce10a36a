"""One-shot structlog setup for worker processes and the CLI.

Level and renderer default to :class:`~jobspine.core.settings.JobSettings`
(``JOBSPINE_LOG_LEVEL`` / ``JOBSPINE_LOG_FORMAT``); explicit arguments win.
Stdlib loggers under ``jobspine`` (the repositories, the schema loader)
are put on the same level so both halves of the output agree.
"""

from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from jobspine.core.settings import get_settings
from jobspine.logging.context import add_context_processor

_configured = False

_SHARED: tuple[Processor, ...] = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    add_context_processor,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
)


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """Install the jobspine processor chain; later calls are ignored unless ``force``."""
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    numeric_level = getattr(logging, (level or settings.log_level).upper())

    structlog.configure(
        processors=[*_SHARED, _renderer((format or settings.log_format).lower())],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        level=numeric_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        force=True,
    )
    logging.getLogger("jobspine").setLevel(numeric_level)
    _configured = True


def is_configured() -> bool:
    return _configured
