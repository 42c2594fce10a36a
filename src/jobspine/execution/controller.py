"""Job lifecycle controller — the state machine over one job row.

Manifesto:
    A job row is shared by every worker instance that can see the store,
    and the store offers nothing stronger than single-row reads and
    versioned writes. The controller owns one row for one attempt and
    moves it through its lifecycle, persisting every step immediately so
    a crash leaves the row in a state the next reader can interpret.

Architecture:
    ::

        UNCLAIMED ──claim()──► CLAIMED ──initialize()──► INITIALIZED
                                                              │
                                                            run()
                                                              ▼
                       TERMINAL ◄──finish()/fail()──────── RUNNING

    Row transitions:
        claim()      PENDING → RUNNING, start_date_time = now
        initialize() may chain a recurrence successor (before running,
                     so the schedule survives a crash of this run)
        finish()     RUNNING → FINISHED, job_result = result summary
        fail()       RUNNING → FAILED, may chain a retry successor

Claim race:
    ``claim()`` re-reads the row, checks it is still unstarted and
    uncancelled, then writes it back with a version check. Two claimers
    that both read version N cannot both write: the loser's update
    matches no row and it gets ``ClaimConflict``. A store that does not
    enforce the version column reopens the window between the read and
    the write; at-most-one dispatch then has to come from the discovery
    layer.

Sentinel:
    At most one successor row is chained per controller. Once
    ``next_recurrence`` is set (by a recurrence in initialize), a failure
    does not also chain a retry.

Guardrails:
    ❌ DON'T: Let finish()/fail() raise on a bookkeeping write
    ✅ DO: Log it; the run's outcome is already decided

    ❌ DON'T: Reuse a controller for a second attempt
    ✅ DO: Build a new controller per claimed row
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from jobspine.core.errors import ClaimConflict, InvalidJob, StaleRowError, StoreError, categorize_error
from jobspine.core.models import UNLIMITED, JobRow, JobStatus, truncate_result, validate_job_transition
from jobspine.core.protocols import Connection, Executor, IdentityResolver, JobStore
from jobspine.core.settings import JobSettings, get_settings
from jobspine.core.timestamps import utc_now
from jobspine.execution.context import ContextResolver, ResolvedContext
from jobspine.execution.result import ExecutionResult
from jobspine.execution.retry import RetryPolicy, recompute_retry_count
from jobspine.logging import get_logger
from jobspine.repositories import JobRepository, RecurrenceRepository, RuntimeDataRepository
from jobspine.scheduling.recurrence import LegacyRecurrence, resolve_recurrence
from jobspine.scheduling.scheduler import RecurrenceScheduler

logger = get_logger(__name__)


class ControllerState(str, Enum):
    UNCLAIMED = "UNCLAIMED"
    CLAIMED = "CLAIMED"
    INITIALIZED = "INITIALIZED"
    RUNNING = "RUNNING"
    TERMINAL = "TERMINAL"


@dataclass
class JobOutcome:
    """Observable result of one controller lifetime."""

    job_id: str
    status: JobStatus
    job_result: str | None = None
    successor_job_id: str | None = None
    next_recurrence: datetime | None = None
    context_degraded: bool = False


class JobLifecycleController:
    """Drive one job row through claim → initialize → run → finish|fail.

    Example:
        >>> controller = JobLifecycleController.from_connection(job_id, conn)
        >>> controller.claim()
        >>> controller.initialize()
        >>> try:
        ...     result = controller.run(executor)
        ... except Exception as e:
        ...     controller.fail(e)
        ... else:
        ...     controller.finish(result)
    """

    def __init__(
        self,
        job_id: str,
        store: JobStore,
        recurrences: RecurrenceRepository,
        context_resolver: ContextResolver,
        *,
        instance_id: str | None = None,
        retry_policy: RetryPolicy | None = None,
        settings: JobSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Bind to ``job_id`` and read its retry bookkeeping.

        Raises:
            InvalidJob: No row with ``job_id`` exists.
            StoreError: The row could not be read.
        """
        if instance_id is None or retry_policy is None:
            settings = settings or get_settings()
        self.instance_id = instance_id if instance_id is not None else settings.instance_id
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)

        self.store = store
        self.recurrences = recurrences
        self.context_resolver = context_resolver
        self.clock = clock

        row = store.fetch_by_id(job_id)
        if row is None:
            raise InvalidJob(f"Job [{job_id}] not found").with_context(job_id=job_id)
        self.row: JobRow = row
        self.job_id = job_id

        self.max_retry = row.max_retry if row.max_retry is not None else UNLIMITED
        if row.current_retry_count is not None:
            self.current_retry_count = row.current_retry_count
        else:
            # rows written before the counter existed
            self.current_retry_count = recompute_retry_count(row, store)

        self.scheduler = RecurrenceScheduler(store)
        self.state = ControllerState.UNCLAIMED
        self.resolved_context: ResolvedContext | None = None
        self._recurrence_evaluated = False
        self._legacy_warning_logged = False

    @classmethod
    def from_connection(
        cls,
        job_id: str,
        conn: Connection,
        *,
        identities: IdentityResolver | None = None,
        **kwargs: Any,
    ) -> JobLifecycleController:
        """Build a controller over the stock repositories on ``conn``."""
        return cls(
            job_id,
            JobRepository(conn),
            RecurrenceRepository(conn),
            ContextResolver(RuntimeDataRepository(conn), identities),
            **kwargs,
        )

    # -- state -------------------------------------------------------------

    @property
    def next_recurrence(self) -> datetime | None:
        return self.scheduler.next_recurrence

    def _require_state(self, action: str, *allowed: ControllerState) -> None:
        if self.state not in allowed:
            raise InvalidJob(
                f"Cannot {action} job [{self.job_id}] in state {self.state.value}"
            ).with_context(job_id=self.job_id, instance_id=self.instance_id)

    # -- claim -------------------------------------------------------------

    def claim(self) -> JobRow:
        """Take ownership of the row for this attempt.

        Raises:
            ClaimConflict: Already started, cancelled or not pending, or
                another writer updated the row between read and write.
            InvalidJob: The row no longer exists.
            StoreError: The row could not be read or written.
        """
        self._require_state("claim", ControllerState.UNCLAIMED)

        fresh = self.store.refresh(self.row)
        if not fresh.is_claimable:
            raise ClaimConflict(f"Job [{self.job_id}] is not available").with_context(
                job_id=self.job_id,
                instance_id=self.instance_id,
                status_id=fresh.status_id.value,
                started=fresh.start_date_time is not None,
                cancelled=fresh.cancel_date_time is not None,
            )

        validate_job_transition(fresh.status_id, JobStatus.RUNNING)
        fresh.start_date_time = self.clock()
        fresh.status_id = JobStatus.RUNNING
        try:
            self.row = self.store.persist(fresh)
        except StaleRowError as e:
            raise ClaimConflict(
                f"Job [{self.job_id}] was updated by another writer while claiming",
                cause=e,
            ).with_context(job_id=self.job_id, instance_id=self.instance_id) from e

        self.state = ControllerState.CLAIMED
        logger.info(
            "job_claimed",
            job_id=self.job_id,
            instance_id=self.instance_id,
            start_date_time=self.row.start_date_time.isoformat(),
        )
        return self.row

    # -- initialize --------------------------------------------------------

    def initialize(self) -> JobRow | None:
        """Verify ownership and chain the next recurrence, if any.

        Runs before the job executes so a recurring schedule survives a
        crash of this run. Calling it again is harmless: the recurrence
        is evaluated once per controller.

        Returns:
            The recurrence successor created by this call, if any.

        Raises:
            InvalidJob: The row is owned by another instance, or its
                schedule cannot be evaluated.
            StoreError: A read or write failed.
        """
        self._require_state("initialize", ControllerState.CLAIMED, ControllerState.INITIALIZED)

        row = self.row
        if row.run_by_instance_id != self.instance_id:
            raise InvalidJob(
                f"Job [{self.job_id}] has been accepted by a different instance"
            ).with_context(
                job_id=self.job_id,
                instance_id=self.instance_id,
                run_by_instance_id=row.run_by_instance_id,
            )

        self.state = ControllerState.INITIALIZED
        if self._recurrence_evaluated:
            return None
        self._recurrence_evaluated = True

        source = resolve_recurrence(row, self.recurrences)
        if source is None:
            return None

        if isinstance(source, LegacyRecurrence) and not self._legacy_warning_logged:
            logger.warning(
                "legacy_recurrence_info",
                job_id=self.job_id,
                recurrence_info_id=source.info.recurrence_info_id,
                hint="use a temporal expression instead",
            )
            self._legacy_warning_logged = True

        max_count = row.max_recurrence_count if row.max_recurrence_count is not None else UNLIMITED
        current_count = row.current_recurrence_count
        if current_count is None:
            current_count = source.current_count or 0

        if max_count != UNLIMITED and current_count + 1 > max_count:
            logger.info(
                "job_recurrence_exhausted",
                job_id=self.job_id,
                current_recurrence_count=current_count,
                max_recurrence_count=max_count,
            )
            return None

        row.current_recurrence_count = current_count + 1
        self.row = self.store.persist(row)
        source.record_occurrence(self.recurrences)

        next_time = source.next(self.clock())
        if next_time is None:
            logger.info("job_recurrence_complete", job_id=self.job_id)
            return None

        successor = self.scheduler.create_successor(self.row, next_time, is_retry=False)
        if successor is not None:
            logger.info(
                "job_recurrence_scheduled",
                job_id=self.job_id,
                successor_job_id=successor.job_id,
                next_run_time=next_time.isoformat(),
                current_recurrence_count=self.row.current_recurrence_count,
            )
        return successor

    # -- run ---------------------------------------------------------------

    def run(self, executor: Executor) -> ExecutionResult:
        """Resolve the context and hand the job to ``executor``.

        Whatever the executor raises propagates; pass it to :meth:`fail`.

        Raises:
            InvalidJob: The row names no service.
        """
        self._require_state("run", ControllerState.INITIALIZED)
        self.state = ControllerState.RUNNING

        self.resolved_context = self.context_resolver.resolve(self.row)
        service_name = self.resolved_context.service_name
        if service_name is None:
            raise InvalidJob(f"Job [{self.job_id}] has no service to run").with_context(
                job_id=self.job_id
            )

        logger.info("job_running", job_id=self.job_id, service_name=service_name)
        return ExecutionResult.from_value(executor.execute(service_name, self.resolved_context.context))

    # -- terminal ----------------------------------------------------------

    def finish(self, result: ExecutionResult | Any = None) -> JobRow:
        """Record a completed run. Never raises on a store failure."""
        self._require_state("finish", ControllerState.RUNNING)
        result = ExecutionResult.from_value(result)

        row = self.row
        validate_job_transition(row.status_id, JobStatus.FINISHED)
        row.status_id = JobStatus.FINISHED
        row.finish_date_time = self.clock()
        summary = result.summary()
        if summary:
            row.job_result = summary

        self._store_outcome("finish")
        self.state = ControllerState.TERMINAL
        logger.info(
            "job_finished",
            job_id=self.job_id,
            result_status=result.status.value,
            job_result=row.job_result,
        )
        return self.row

    def fail(self, error: BaseException) -> JobRow:
        """Record a failed run and chain a retry if the budget allows.

        No retry is chained when a recurrence successor already exists
        for this lifetime. Never raises on a store failure.
        """
        self._require_state("fail", ControllerState.INITIALIZED, ControllerState.RUNNING)
        now = self.clock()
        row = self.row

        if not self.scheduler.has_chained:
            if self.retry_policy.can_retry(self.max_retry, self.current_retry_count):
                next_time = self.retry_policy.next_run_time(now)
                try:
                    successor = self.scheduler.create_successor(
                        row,
                        next_time,
                        is_retry=True,
                        current_retry_count=self.current_retry_count,
                    )
                except StoreError as e:
                    logger.error(
                        "job_retry_schedule_failed",
                        job_id=self.job_id,
                        next_run_time=next_time.isoformat(),
                        error=str(e),
                    )
                else:
                    if successor is None:
                        logger.warning(
                            "job_retry_not_advancing",
                            job_id=self.job_id,
                            next_run_time=next_time.isoformat(),
                            run_time=row.run_time.isoformat() if row.run_time else None,
                        )
                    else:
                        logger.info(
                            "job_retry_scheduled",
                            job_id=self.job_id,
                            successor_job_id=successor.job_id,
                            next_run_time=next_time.isoformat(),
                            current_retry_count=self.current_retry_count + 1,
                        )
            else:
                logger.warning(
                    "job_max_retry_hit",
                    job_id=self.job_id,
                    max_retry=self.max_retry,
                    current_retry_count=self.current_retry_count,
                )

        validate_job_transition(row.status_id, JobStatus.FAILED)
        row.status_id = JobStatus.FAILED
        row.finish_date_time = now
        row.job_result = truncate_result(str(error) or type(error).__name__)

        self._store_outcome("fail")
        self.state = ControllerState.TERMINAL
        logger.warning(
            "job_failed",
            job_id=self.job_id,
            error_type=type(error).__name__,
            error_category=categorize_error(error).value,
            job_result=row.job_result,
        )
        return self.row

    def _store_outcome(self, action: str) -> None:
        try:
            self.row = self.store.persist(self.row)
        except StoreError as e:
            logger.error(
                "job_store_update_failed",
                job_id=self.job_id,
                action=action,
                status_id=self.row.status_id.value,
                error=str(e),
            )

    # -- reporting ---------------------------------------------------------

    def outcome(self) -> JobOutcome:
        successor = self.scheduler.successor
        return JobOutcome(
            job_id=self.job_id,
            status=self.row.status_id,
            job_result=self.row.job_result,
            successor_job_id=successor.job_id if successor else None,
            next_recurrence=self.next_recurrence,
            context_degraded=bool(self.resolved_context and self.resolved_context.degraded),
        )


__all__ = [
    "ControllerState",
    "JobOutcome",
    "JobLifecycleController",
]
