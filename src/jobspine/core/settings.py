"""Worker settings for jobspine.

The lifecycle controller reads two values it does not own: the identity
of the worker instance it runs in, and how long a failed job waits before
its retry row becomes eligible. Both come from the environment (or a
``.env`` file) under the ``JOBSPINE_`` prefix.

Fields
──────
instance_id           : Identity stamped into ``jobs.run_by_instance_id``
failed_retry_minutes  : Backoff before a retry successor may run
database              : SQLite path used by the CLI
log_level / log_format: structlog configuration

Examples:
    >>> import os
    >>> os.environ["JOBSPINE_INSTANCE_ID"] = "worker-7"
    >>> get_settings().instance_id
    'worker-7'
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JobSettings(BaseSettings):
    """Settings shared by every job controller in one worker process."""

    model_config = SettingsConfigDict(
        env_prefix="JOBSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    instance_id: str = "jobspine0"

    # ── Retry ────────────────────────────────────────────────────
    failed_retry_minutes: int = Field(
        default=3,
        ge=0,
        description="Minutes a failed job waits before its retry row is eligible",
    )

    # ── Storage ──────────────────────────────────────────────────
    database: Path = Field(
        default_factory=lambda: Path.home() / ".jobspine" / "jobs.db",
        description="SQLite database used by the CLI",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"


@lru_cache(maxsize=1)
def get_settings() -> JobSettings:
    """Process-wide settings, read once."""
    return JobSettings()


def reset_settings() -> None:
    """Forget the cached settings (tests, config reload)."""
    get_settings.cache_clear()


__all__ = [
    "JobSettings",
    "get_settings",
    "reset_settings",
]
