"""Context resolution — building the executor's input from a job row.

A job row carries its execution input by reference: ``runtime_data_id``
points at a stored JSON object, and ``run_as_user`` names the identity
the job should run as. The resolver loads both and hands the executor a
plain mapping.

Resolution prefers availability: any failure to load, decode or look up
yields an empty context and the job still runs. The degradation is not
silent. The returned :class:`ResolvedContext` is flagged ``degraded``
with the reason, and a structured ``job_context_degraded`` warning is
logged.

ARCHITECTURE
────────────
::

    JobRow ──► ContextResolver.resolve(row)
                 ├── service_name  ← row.service_name (None if absent)
                 ├── runtime_data  ← RuntimeDataRepository.get(id) → json.loads
                 └── run_as_user   ← IdentityResolver.resolve(user, ctx)
                                      → context["user_login"]
               ──► ResolvedContext(service_name, context, degraded, warnings)
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from jobspine.core.errors import ContextResolutionError, StoreError
from jobspine.core.models import JobRow
from jobspine.core.protocols import IdentityResolver
from jobspine.logging import get_logger
from jobspine.repositories.runtime_data import RuntimeDataRepository

logger = get_logger(__name__)

# Context key the run-as identity is injected under.
RUN_AS_IDENTITY_KEY = "user_login"


@dataclass
class ResolvedContext:
    """Executor input for one job run."""

    service_name: str | None
    context: dict[str, Any] = field(default_factory=dict)
    degraded: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunAsIdentity:
    """Identity a job runs as."""

    user_login_id: str
    attributes: Mapping[str, Any] = field(default_factory=dict)


class MappingIdentityResolver:
    """Resolve run-as identities from an in-memory directory.

    Example:
        >>> resolver = MappingIdentityResolver({"admin": {"locale": "en"}})
        >>> resolver.resolve("admin", {}).user_login_id
        'admin'
    """

    def __init__(self, users: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._users = dict(users or {})

    def resolve(self, user_id: str, context: Mapping[str, Any]) -> RunAsIdentity:
        if user_id not in self._users:
            raise ContextResolutionError(f"Unknown run-as user [{user_id}]")
        return RunAsIdentity(user_login_id=user_id, attributes=self._users[user_id])


class ContextResolver:
    """Assemble the service name and context for a job row."""

    def __init__(
        self,
        runtime_data: RuntimeDataRepository,
        identities: IdentityResolver | None = None,
    ) -> None:
        self.runtime_data = runtime_data
        self.identities = identities

    def resolve(self, row: JobRow) -> ResolvedContext:
        service_name = row.service_name or None
        try:
            context = self._load_context(row)
            if row.run_as_user:
                context[RUN_AS_IDENTITY_KEY] = self._resolve_identity(row, context)
        except (ContextResolutionError, StoreError, ValueError, TypeError, LookupError) as e:
            reason = str(e)
            logger.warning(
                "job_context_degraded",
                job_id=row.job_id,
                service_name=service_name,
                reason=reason,
                error_type=type(e).__name__,
            )
            return ResolvedContext(
                service_name=service_name,
                context={},
                degraded=True,
                warnings=[reason],
            )

        return ResolvedContext(service_name=service_name, context=context)

    def _load_context(self, row: JobRow) -> dict[str, Any]:
        if not row.runtime_data_id:
            return {}

        record = self.runtime_data.get(row.runtime_data_id)
        if record is None or not record.runtime_info:
            logger.debug("job_runtime_data_empty", job_id=row.job_id, runtime_data_id=row.runtime_data_id)
            return {}

        # json.JSONDecodeError is a ValueError
        decoded = json.loads(record.runtime_info)
        if not isinstance(decoded, dict):
            raise ContextResolutionError(
                f"Runtime data [{row.runtime_data_id}] is a {type(decoded).__name__}, not an object"
            )
        return decoded

    def _resolve_identity(self, row: JobRow, context: Mapping[str, Any]) -> Any:
        if self.identities is None:
            raise ContextResolutionError(
                f"Job [{row.job_id}] runs as [{row.run_as_user}] but no identity resolver is configured"
            )
        return self.identities.resolve(row.run_as_user, context)


__all__ = [
    "RUN_AS_IDENTITY_KEY",
    "ResolvedContext",
    "RunAsIdentity",
    "MappingIdentityResolver",
    "ContextResolver",
]
