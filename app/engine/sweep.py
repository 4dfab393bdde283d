"""
Maintenance sweep — the daily, idempotent lifecycle pass.

Phases run strictly in order, each in its own database session and
under a bounded timeout:

1. ``reconcile_overdue`` — non-terminal sessions whose end has passed
   (in the athlete's zone) become ``absent``.  Non-fatal.
2. ``materialize`` — every athlete's horizon is filled from the weekly
   templates.  Fatal: the run stops with :class:`SweepFailed`.
3. ``cleanup`` — ``completed``/``absent`` sessions older than the
   retention period are deleted with their child records.  Non-fatal.

Re-running the sweep on the same day leaves the store unchanged: the
reconciliation only touches non-terminal rows, materialization is a
conditional insert, and cleanup finds nothing left to delete.

Only one sweep runs at a time.  Inside a process a non-blocking lock
rejects a second caller; across processes a ``running``
:class:`MaintenanceRun` row younger than the lease does the same.

A phase that outlives its timeout is reported as failed and the run moves
on.  Its worker thread cannot be killed, so its session is armed to raise
:class:`PhaseCancelled` on the next statement or commit; on PostgreSQL
``statement_timeout`` and ``lock_timeout`` also bound the statement it is
blocked in.  Writes the worker committed before the timeout stay.
"""

from __future__ import annotations

import datetime
import logging
import threading
from contextlib import contextmanager
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import Connection
from sqlmodel import Session

from app.core.config import Settings
from app.core.errors import (
    ConfigurationError,
    InvariantViolation,
    SweepAlreadyRunning,
    SweepFailed,
)
from app.db.repositories.athlete import AthleteRepository
from app.db.repositories.maintenance_run import MaintenanceRunRepository
from app.db.repositories.schedule import ScheduleRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.db.session import SessionFactory
from app.engine.materializer import materialize_horizon
from app.engine.state_machine import StateMachineConfig, window_for
from app.engine.timeutils import local_today, to_local, utcnow
from app.models.maintenance_run import RUN_FAILED, RUN_SUCCEEDED
from app.models.training_session import PRUNABLE_STATUSES, SessionStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

PHASE_RECONCILE = "reconcile_overdue"
PHASE_MATERIALIZE = "materialize"
PHASE_CLEANUP = "cleanup"

# Guards against two sweeps in one process; the lease row covers the rest.
_RUN_LOCK = threading.Lock()


class PhaseTimeout(Exception):
    """Raised when a phase exceeds its time budget."""

    def __init__(self, phase: str, seconds: float) -> None:
        self.phase = phase
        self.seconds = seconds
        super().__init__(f"Phase '{phase}' exceeded {seconds:g}s")


class PhaseCancelled(Exception):
    """Raised inside a timed-out phase worker on its next statement or commit."""

    def __init__(self, phase: str) -> None:
        self.phase = phase
        super().__init__(f"Phase '{phase}' was cancelled after its timeout")


def _stop_when_cancelled(db: Session, cancelled: threading.Event, phase: str) -> None:
    def check(*args) -> None:
        if cancelled.is_set():
            raise PhaseCancelled(phase)

    event.listen(db, "do_orm_execute", check)
    event.listen(db, "before_commit", check)


def apply_statement_deadline(connection: Connection, seconds: float) -> None:
    """Bound every statement and lock wait on ``connection`` (PostgreSQL)."""
    millis = max(1, int(seconds * 1000))
    connection.exec_driver_sql(f"SET statement_timeout = {millis}")
    connection.exec_driver_sql(f"SET lock_timeout = {millis}")
    connection.commit()


def clear_statement_deadline(connection: Connection) -> None:
    connection.exec_driver_sql("RESET statement_timeout")
    connection.exec_driver_sql("RESET lock_timeout")
    connection.commit()


# ======================================================================
# Report
# ======================================================================


@dataclass
class PhaseResult:
    name: str
    ok: bool
    count: int = 0
    error: Optional[str] = None


@dataclass
class SweepReport:
    """Outcome of one sweep run."""

    started_at: datetime.datetime
    finished_at: Optional[datetime.datetime] = None
    overdue_marked: int = 0
    overdue_skipped: int = 0
    sessions_created: int = 0
    sessions_pruned: int = 0
    phases: list[PhaseResult] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(phase.ok for phase in self.phases)

    def errors(self) -> list[str]:
        return [f"{phase.name}: {phase.error}" for phase in self.phases if not phase.ok]


# ======================================================================
# Sweep
# ======================================================================


class MaintenanceSweep:
    """Run the maintenance phases against the store behind ``session_factory``.

    Args:
        session_factory: Zero-argument callable returning a new DB session.
        settings: Application settings (horizon, retention, timeouts).
    """

    def __init__(self, session_factory: SessionFactory, settings: Settings):
        self.session_factory = session_factory
        self.settings = settings
        self.state_config = StateMachineConfig.from_settings(settings)

    def run(self, now: Optional[datetime.datetime] = None) -> SweepReport:
        """Execute one sweep.

        Args:
            now: Reference instant.  Naive values are read as UTC.

        Raises:
            ConfigurationError: No database is configured.
            SweepAlreadyRunning: Another sweep holds the lock or lease.
            SweepFailed: The materialization phase failed.
        """
        if not self.settings.database_configured:
            raise ConfigurationError("Missing database configuration (DATABASE_PASSWORD or DATABASE_URL_OVERRIDE)")

        now = _as_utc(now or utcnow())

        if not _RUN_LOCK.acquire(blocking=False):
            raise SweepAlreadyRunning("A maintenance sweep is already running in this process")
        try:
            return self._run_locked(now)
        finally:
            _RUN_LOCK.release()

    def _run_locked(self, now: datetime.datetime) -> SweepReport:
        naive_now = now.replace(tzinfo=None)
        with self.session_factory() as db:
            run = MaintenanceRunRepository(db).acquire(naive_now, self.settings.SWEEP_LEASE_SECONDS)
            run_id = run.id

        report = SweepReport(started_at=now)
        logger.info("Maintenance sweep %s started at %s", run_id, now.isoformat())

        try:
            self._phase(report, PHASE_RECONCILE, lambda db: self._reconcile_overdue(db, now, report), fatal=False)
            report.sessions_created = self._phase(report, PHASE_MATERIALIZE,
                                                  lambda db: self._materialize(db, now), fatal=True)
            report.sessions_pruned = self._phase(report, PHASE_CLEANUP, lambda db: self._cleanup(db, now),
                                                 fatal=False)
        except SweepFailed as e:
            report.finished_at = utcnow()
            self._finish(run_id, RUN_FAILED, report, str(e))
            raise

        report.finished_at = utcnow()
        errors = report.errors()
        self._finish(run_id, RUN_SUCCEEDED if report.success else RUN_FAILED, report,
                     "; ".join(errors) if errors else None)
        logger.info("Maintenance sweep %s finished: %d overdue marked, %d created, %d pruned%s", run_id,
                    report.overdue_marked, report.sessions_created, report.sessions_pruned,
                    f" ({len(errors)} phase error(s))" if errors else "")
        return report

    # ------------------------------------------------------------------
    # Phase runner
    # ------------------------------------------------------------------

    def _phase(self, report: SweepReport, name: str, body: Callable[[Session], int], fatal: bool) -> int:
        """Run ``body`` in a fresh session with the configured timeout.

        Non-fatal failures are logged and recorded; fatal ones raise
        :class:`SweepFailed`.
        """
        try:
            count = self._with_timeout(name, body)
        except InvariantViolation as e:
            logger.critical("Invariant violated during %s: %s", name, e)
            report.alerts.append(f"{name}: {e}")
            report.phases.append(PhaseResult(name=name, ok=False, error=str(e)))
            if fatal:
                raise SweepFailed(name, e) from e
            return 0
        except Exception as e:
            report.phases.append(PhaseResult(name=name, ok=False, error=str(e)))
            if fatal:
                logger.error("Maintenance phase %s failed: %s", name, e)
                raise SweepFailed(name, e) from e
            logger.warning("Maintenance phase %s failed, continuing: %s", name, e)
            return 0

        report.phases.append(PhaseResult(name=name, ok=True, count=count))
        return count

    def _with_timeout(self, name: str, body: Callable[[Session], T]) -> T:
        timeout = self.settings.SWEEP_PHASE_TIMEOUT_SECONDS
        cancelled = threading.Event()

        def target() -> T:
            with self._phase_session(timeout) as db:
                _stop_when_cancelled(db, cancelled, name)
                return body(db)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"sweep-{name}")
        try:
            future = executor.submit(target)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as e:
                # The worker cannot be killed; its next statement or commit raises instead
                cancelled.set()
                future.cancel()
                raise PhaseTimeout(name, timeout) from e
        finally:
            executor.shutdown(wait=False)

    @contextmanager
    def _phase_session(self, seconds: float) -> Iterator[Session]:
        """A session for one phase; on PostgreSQL every statement is bounded by ``seconds``."""
        with self.session_factory() as lookup:
            bind = lookup.get_bind()
        if bind.dialect.name != "postgresql":
            with self.session_factory() as db:
                yield db
            return

        # Settings live on the connection, so the session keeps one for the whole phase
        with bind.connect() as connection:
            apply_statement_deadline(connection, seconds)
            try:
                with Session(bind=connection) as db:
                    yield db
            finally:
                connection.rollback()
                clear_statement_deadline(connection)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _reconcile_overdue(self, db: Session, now: datetime.datetime, report: SweepReport) -> int:
        sessions = TrainingSessionRepository(db)

        # Local dates never run more than a day ahead of UTC
        candidates = sessions.get_non_terminal_until(now.date() + datetime.timedelta(days=1))
        timezones = AthleteRepository(db).get_timezones(s.athlete_id for s in candidates)

        by_status: dict[SessionStatus, list[int]] = { }
        for entry in candidates:
            timezone = timezones.get(entry.athlete_id, self.settings.DEFAULT_TIMEZONE)
            if window_for(entry, timezone, self.state_config).has_ended(to_local(now, timezone)):
                by_status.setdefault(SessionStatus(entry.status), []).append(entry.id)

        overdue = sum(len(ids) for ids in by_status.values())
        marked = 0
        for observed, ids in by_status.items():
            # Each row is only updated if it still holds the status we read
            marked += sessions.bulk_transition(ids, [observed], SessionStatus.ABSENT,
                                               absence_reason=self.settings.OVERDUE_ABSENCE_REASON, )

        report.overdue_marked = marked
        report.overdue_skipped = overdue - marked
        if report.overdue_skipped:
            logger.info("Skipped %d overdue session(s) changed by a concurrent writer", report.overdue_skipped)
        logger.info("Marked %d overdue session(s) absent", marked)
        return marked

    def _materialize(self, db: Session, now: datetime.datetime) -> int:
        athletes = AthleteRepository(db)
        zones: dict[int, str] = { }

        def today_for(athlete_id: int) -> datetime.date:
            if athlete_id not in zones:
                zones.update(athletes.get_timezones([athlete_id]))
            return local_today(now, zones.get(athlete_id, self.settings.DEFAULT_TIMEZONE))

        result = materialize_horizon(ScheduleRepository(db), TrainingSessionRepository(db),
                                     today=local_today(now, self.settings.DEFAULT_TIMEZONE),
                                     horizon_days=self.settings.SESSION_HORIZON_DAYS, today_for=today_for, )
        return result.inserted

    def _cleanup(self, db: Session, now: datetime.datetime) -> int:
        today = local_today(now, self.settings.DEFAULT_TIMEZONE)
        cutoff = today - datetime.timedelta(days=self.settings.SESSION_RETENTION_DAYS)
        pruned = TrainingSessionRepository(db).delete_terminal_before(cutoff, PRUNABLE_STATUSES)
        logger.info("Pruned %d session(s) scheduled before %s", pruned, cutoff)
        return pruned

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _finish(self, run_id: int, status: str, report: SweepReport, error: Optional[str]) -> None:
        with self.session_factory() as db:
            MaintenanceRunRepository(db).finish(run_id, status,
                                                finished_at=report.finished_at.replace(tzinfo=None),
                                                overdue_marked=report.overdue_marked,
                                                sessions_created=report.sessions_created,
                                                sessions_pruned=report.sessions_pruned, error=error, )


def _as_utc(now: datetime.datetime) -> datetime.datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc)
