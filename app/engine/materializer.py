"""
Session materializer — expands weekly templates into dated sessions.

Two steps, kept apart so the expansion can be tested without a store:

1. :func:`materialize` — pure.  For every date in the inclusive horizon
   and every template whose ``day_of_week`` matches that date, emit one
   ``scheduled`` candidate.
2. :func:`persist` — conditional insert keyed on
   ``(athlete_id, scheduled_date, start_time, end_time)``.  Candidates
   that collide with an existing session are skipped, so re-running over
   an overlapping horizon is a no-op for dates already materialized.

A store error aborts the whole batch (it is one transaction); a retry is
safe because of the conditional insert.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from app.core.errors import InvariantViolation
from app.db.repositories.schedule import ScheduleRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.engine.timeutils import date_range, horizon, sunday_based_weekday
from app.models.schedule_template import ScheduleTemplate
from app.models.training_session import SessionKind, SessionStatus

logger = logging.getLogger(__name__)


# ======================================================================
# Pure expansion
# ======================================================================


@dataclass(frozen=True)
class SessionCandidate:
    """A session the horizon requires; not yet persisted."""

    athlete_id: int
    scheduled_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    kind: SessionKind
    status: SessionStatus = SessionStatus.SCHEDULED

    @property
    def slot(self) -> tuple[int, datetime.date, datetime.time, datetime.time]:
        return self.athlete_id, self.scheduled_date, self.start_time, self.end_time

    def to_row(self, created_at: datetime.datetime) -> dict:
        return { "athlete_id": self.athlete_id, "scheduled_date": self.scheduled_date, "start_time": self.start_time,
                 "end_time": self.end_time, "kind": self.kind, "status": self.status, "absence_reason": None,
                 "created_at": created_at, "updated_at": created_at, }


def materialize(templates: Iterable[ScheduleTemplate], horizon_start: datetime.date,
                horizon_end: datetime.date, ) -> list[SessionCandidate]:
    """Expand ``templates`` over ``[horizon_start, horizon_end]``.

    Returns candidates ordered by date, then template order.  Two
    templates on the same slot yield a single candidate (first wins).
    """
    by_weekday: dict[int, list[ScheduleTemplate]] = { }
    for template in templates:
        by_weekday.setdefault(template.day_of_week, []).append(template)

    candidates: list[SessionCandidate] = []
    seen: set[tuple] = set()
    for day in date_range(horizon_start, horizon_end):
        for template in by_weekday.get(sunday_based_weekday(day), []):
            candidate = SessionCandidate(athlete_id=template.athlete_id, scheduled_date=day,
                                         start_time=template.start_time, end_time=template.end_time,
                                         kind=SessionKind(template.kind), )
            if candidate.slot in seen:
                continue
            seen.add(candidate.slot)
            candidates.append(candidate)
    return candidates


# ======================================================================
# Persistence
# ======================================================================


def persist(repository: TrainingSessionRepository, candidates: list[SessionCandidate]) -> int:
    """Conditionally insert ``candidates``; return how many were new.

    Raises:
        TransientStoreError: The batch could not be written.
    """
    if not candidates:
        return 0
    now = datetime.datetime.utcnow()
    return repository.insert_if_absent([c.to_row(now) for c in candidates])


@dataclass
class MaterializationResult:
    horizon_start: Optional[datetime.date]
    horizon_end: Optional[datetime.date]
    templates: int
    candidates: int
    inserted: int

    @property
    def skipped(self) -> int:
        return self.candidates - self.inserted


def materialize_horizon(schedule_repo: ScheduleRepository, session_repo: TrainingSessionRepository,
                        today: datetime.date, horizon_days: int = 7, athlete_id: Optional[int] = None,
                        today_for: Optional[Callable[[int], datetime.date]] = None, ) -> MaterializationResult:
    """Make sure every template has its sessions for ``[today, today + horizon_days]``.

    Args:
        schedule_repo: Source of templates.
        session_repo: Session store.
        today: First day of the horizon.
        horizon_days: Days ahead of ``today`` (inclusive end).
        athlete_id: Restrict to one athlete (schedule setup); ``None`` for all.
        today_for: Optional ``athlete_id -> local date`` used instead of
            ``today`` so each athlete's horizon starts on their own
            calendar day.

    Raises:
        TransientStoreError: Reading templates or writing sessions failed.
        InvariantViolation: The store holds duplicate sessions for a slot.
    """
    templates = schedule_repo.get_all(athlete_id=athlete_id)

    by_athlete: dict[int, list[ScheduleTemplate]] = { }
    for template in templates:
        by_athlete.setdefault(template.athlete_id, []).append(template)

    candidates: list[SessionCandidate] = []
    starts: list[datetime.date] = []
    ends: list[datetime.date] = []
    for owner, owned in by_athlete.items():
        start, end = horizon(today_for(owner) if today_for else today, horizon_days)
        starts.append(start)
        ends.append(end)
        candidates.extend(materialize(owned, start, end))

    inserted = persist(session_repo, candidates)

    result = MaterializationResult(horizon_start=min(starts, default=None), horizon_end=max(ends, default=None),
                                   templates=len(templates), candidates=len(candidates), inserted=inserted, )

    if result.horizon_start is not None:
        duplicates = session_repo.find_duplicate_slots(result.horizon_start, result.horizon_end)
        if duplicates:
            raise InvariantViolation(f"Duplicate sessions for {len(duplicates)} slot(s) between "
                                     f"{result.horizon_start} and {result.horizon_end}: {duplicates[:5]}")

    logger.info("Materialized %d new session(s) from %d template(s) for %s..%s (%d already present)",
                result.inserted, result.templates, result.horizon_start, result.horizon_end, result.skipped)
    return result
