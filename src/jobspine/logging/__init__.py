"""Structured logging for job workers.

structlog events carry the job being driven (``job_id``, lineage root,
worker ``instance_id``, ``service_name``, retry ``attempt``) without the
caller passing them around::

    from jobspine.logging import configure_logging, get_logger, job_context

    configure_logging()
    log = get_logger(__name__)

    with job_context(job_id=row.job_id, instance_id="worker-1"):
        log.info("job_claimed")
"""

from jobspine.logging.config import configure_logging, is_configured
from jobspine.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    job_context,
    push_context,
)

__all__ = [
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "is_configured",
    "job_context",
    "push_context",
]
