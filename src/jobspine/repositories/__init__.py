"""Repositories for the job tables."""

from .jobs import JobRepository
from .recurrence import RecurrenceRepository
from .runtime_data import RuntimeDataRepository

__all__ = [
    "JobRepository",
    "RecurrenceRepository",
    "RuntimeDataRepository",
]
