"""
Training session repository.

Handles database operations for :class:`TrainingSession`, including the
bulk conditional writes used by the maintenance sweep.  Every status
write is a compare-and-swap on the current status: an update only
touches rows still in one of the expected statuses, so a sweep working
from a stale read never clobbers a concurrent user transition.
"""

import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from app.core.errors import store_operation
from app.db.upsert import insert_ignoring_conflicts
from app.models.checkin import PreTrainingCheckin, SessionGoal
from app.models.reflection import SessionReflection, TrainingNote
from app.models.training_session import NON_TERMINAL_STATUSES, SessionStatus, TrainingSession

SLOT_COLUMNS: tuple[str, ...] = ("athlete_id", "scheduled_date", "start_time", "end_time")


class TrainingSessionRepository:
    """Repository for TrainingSession database operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, entry: TrainingSession) -> TrainingSession:
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def get_by_id(self, entry_id: int) -> Optional[TrainingSession]:
        return self.session.get(TrainingSession, entry_id)

    def get_by_athlete_date_range(self, athlete_id: int, start: datetime.date,
                                  end: datetime.date, ) -> list[TrainingSession]:
        statement = (select(TrainingSession).where(TrainingSession.athlete_id == athlete_id,
                                                   TrainingSession.scheduled_date >= start,
                                                   TrainingSession.scheduled_date <= end, ).order_by(
            TrainingSession.scheduled_date, TrainingSession.start_time))
        return list(self.session.exec(statement).all())

    def get_next_open(self, athlete_id: int, from_date: datetime.date) -> Optional[TrainingSession]:
        """Earliest non-terminal session on or after ``from_date``."""
        statement = (select(TrainingSession).where(TrainingSession.athlete_id == athlete_id,
                                                   TrainingSession.scheduled_date >= from_date,
                                                   TrainingSession.status.in_(NON_TERMINAL_STATUSES), ).order_by(
            TrainingSession.scheduled_date, TrainingSession.start_time).limit(1))
        return self.session.exec(statement).first()

    def get_non_terminal_until(self, last_date: datetime.date) -> list[TrainingSession]:
        """Non-terminal sessions scheduled on or before ``last_date`` (all athletes)."""
        with store_operation("get_non_terminal_until"):
            statement = (select(TrainingSession).where(TrainingSession.scheduled_date <= last_date,
                                                       TrainingSession.status.in_(NON_TERMINAL_STATUSES), ).order_by(
                TrainingSession.scheduled_date, TrainingSession.start_time))
            return list(self.session.exec(statement).all())

    def get_completed_dates(self, athlete_id: int) -> list[datetime.date]:
        """Distinct dates with at least one completed session, newest first."""
        statement = (select(TrainingSession.scheduled_date).where(TrainingSession.athlete_id == athlete_id,
                                                                  TrainingSession.status == SessionStatus.COMPLETED, )
                     .distinct().order_by(TrainingSession.scheduled_date.desc()))
        return list(self.session.exec(statement).all())

    def get_completed(self, athlete_id: int) -> list[TrainingSession]:
        statement = (select(TrainingSession).where(TrainingSession.athlete_id == athlete_id,
                                                   TrainingSession.status == SessionStatus.COMPLETED, ).order_by(
            TrainingSession.scheduled_date.desc()))
        return list(self.session.exec(statement).all())

    def count_by_status(self, athlete_id: int) -> dict[SessionStatus, int]:
        statement = (select(TrainingSession.status, func.count()).where(
            TrainingSession.athlete_id == athlete_id).group_by(TrainingSession.status))
        counts = { status: 0 for status in SessionStatus }
        for status, count in self.session.exec(statement).all():
            counts[SessionStatus(status)] = count
        return counts

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def insert_if_absent(self, rows: Sequence[dict]) -> int:
        """Conditionally insert session rows keyed on the slot tuple.

        Rows colliding with an existing session are skipped.  The batch
        is committed as one transaction; any store error rolls it back.

        Returns:
            Number of sessions inserted.
        """
        with store_operation("insert_if_absent"):
            try:
                inserted = insert_ignoring_conflicts(self.session, TrainingSession, rows, SLOT_COLUMNS)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        return inserted

    def find_duplicate_slots(self, start: datetime.date,
                             end: datetime.date, ) -> list[tuple[int, datetime.date, datetime.time, datetime.time]]:
        """Slot tuples in ``[start, end]`` held by more than one session."""
        with store_operation("find_duplicate_slots"):
            statement = (select(TrainingSession.athlete_id, TrainingSession.scheduled_date,
                                TrainingSession.start_time, TrainingSession.end_time, ).where(
                TrainingSession.scheduled_date >= start, TrainingSession.scheduled_date <= end, ).group_by(
                TrainingSession.athlete_id, TrainingSession.scheduled_date, TrainingSession.start_time,
                TrainingSession.end_time, ).having(func.count() > 1))
            return [tuple(row) for row in self.session.exec(statement).all()]

    # ------------------------------------------------------------------
    # Conditional status writes
    # ------------------------------------------------------------------

    def transition_status(self, entry_id: int, expected: Iterable[SessionStatus], new_status: SessionStatus,
                          absence_reason: Optional[str] = None, commit: bool = True, ) -> bool:
        """Compare-and-swap the status of one session.

        Returns:
            True if the row was in an expected status and was updated.
        """
        return self.bulk_transition([entry_id], expected, new_status, absence_reason, commit=commit) == 1

    def bulk_transition(self, entry_ids: Sequence[int], expected: Iterable[SessionStatus], new_status: SessionStatus,
                        absence_reason: Optional[str] = None, commit: bool = True, ) -> int:
        """Predicate-based bulk status update, guarded per row by ``expected``.

        With ``commit=False`` the update joins the caller's transaction and
        the caller commits or rolls back.

        Returns:
            Number of rows updated.
        """
        if not entry_ids:
            return 0
        values: dict = { "status": new_status, "updated_at": datetime.datetime.utcnow() }
        if absence_reason is not None:
            values["absence_reason"] = absence_reason
        statement = (update(TrainingSession).where(TrainingSession.id.in_(list(entry_ids)),
                                                   TrainingSession.status.in_(list(expected)), ).values(**values)
                     .execution_options(synchronize_session=False))
        with store_operation("bulk_transition"):
            if not commit:
                return self.session.execute(statement).rowcount or 0
            try:
                result = self.session.execute(statement)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        # Loaded instances may now be stale
        self.session.expire_all()
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def delete_terminal_before(self, cutoff: datetime.date, statuses: Sequence[SessionStatus], ) -> int:
        """Delete sessions in ``statuses`` scheduled before ``cutoff`` with their child records.

        Returns:
            Number of sessions deleted.
        """
        predicate = (TrainingSession.scheduled_date < cutoff, TrainingSession.status.in_(list(statuses)))
        doomed = select(TrainingSession.id).where(*predicate)
        with store_operation("delete_terminal_before"):
            try:
                for child in (SessionGoal, PreTrainingCheckin, TrainingNote, SessionReflection):
                    self.session.execute(delete(child).where(child.session_id.in_(doomed)))
                result = self.session.execute(delete(TrainingSession).where(*predicate))
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(self, entry: TrainingSession) -> TrainingSession:
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry
