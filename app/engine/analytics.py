"""
Progress analytics — streaks, rolling consistency, goal completion.

All metrics are read-only derivations over the session history.

Current streak
--------------
Take the distinct dates that hold at least one completed session,
newest first.  The streak starts only if the newest date is today or
yesterday; it then extends while each next date is exactly one day
earlier.  Two completed sessions on one day count as one streak day.

Rolling consistency
-------------------
``completed / scheduled`` over every session (any status) whose date
falls in the last ``window_days`` days ending today, as a rounded
percentage.  An empty window is 0.

Goal completion
---------------
Over the goals attached to *completed* sessions in the last
``window_days`` days: ``achieved is True`` / all goals, rounded.  Goals
never assessed (``None``) count in the denominator.  No goals is 0.
"""

from __future__ import annotations

import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, Field
from sqlmodel import Session

from app.db.repositories.checkin import CheckinRepository
from app.db.repositories.reflection import ReflectionRepository
from app.db.repositories.star_award import StarAwardRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.models.checkin import SessionGoal
from app.models.training_session import SessionStatus, TrainingSession
from app.schemas.analytics import ProgressResponse

# ======================================================================
# Configuration
# ======================================================================


class AnalyticsConfig(BaseModel):
    consistency_window_days: int = Field(28, ge=1, le=365)
    goal_window_days: int = Field(7, ge=1, le=365)


DEFAULT_CONFIG = AnalyticsConfig()


def percent(numerator: int, denominator: int) -> int:
    """Integer percentage rounded half-up; 0 when ``denominator`` is 0."""
    if denominator <= 0:
        return 0
    # Integer arithmetic avoids banker's rounding and float drift
    return (200 * numerator + denominator) // (2 * denominator)


def _window_start(today: datetime.date, window_days: int) -> datetime.date:
    return today - datetime.timedelta(days=window_days - 1)


# ======================================================================
# Streaks
# ======================================================================


def _distinct_desc(dates: Iterable[datetime.date]) -> list[datetime.date]:
    return sorted(set(dates), reverse=True)


def current_streak(completed_dates: Iterable[datetime.date], today: datetime.date) -> int:
    """Consecutive completed days ending today or yesterday."""
    days = _distinct_desc(d for d in completed_dates if d <= today)
    if not days or (today - days[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if (previous - current).days != 1:
            break
        streak += 1
    return streak


def longest_streak(completed_dates: Iterable[datetime.date]) -> int:
    """Longest run of consecutive completed days anywhere in the history."""
    days = _distinct_desc(completed_dates)
    if not days:
        return 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        run = run + 1 if (previous - current).days == 1 else 1
        longest = max(longest, run)
    return longest


# ======================================================================
# Rates
# ======================================================================


def rolling_consistency(sessions: Iterable[TrainingSession], today: datetime.date, window_days: int = 28) -> int:
    """Percentage of sessions in the window that were completed."""
    start = _window_start(today, window_days)
    in_window = [s for s in sessions if start <= s.scheduled_date <= today]
    completed = sum(1 for s in in_window if s.status == SessionStatus.COMPLETED)
    return percent(completed, len(in_window))


def goal_completion_rate(goals: Iterable[tuple[SessionGoal, datetime.date]], today: datetime.date,
                         window_days: int = 7, ) -> int:
    """Percentage of achieved goals among completed-session goals in the window.

    Args:
        goals: ``(goal, scheduled_date)`` pairs, already restricted to
            completed sessions.
    """
    start = _window_start(today, window_days)
    in_window = [goal for goal, scheduled_date in goals if start <= scheduled_date <= today]
    achieved = sum(1 for goal in in_window if goal.achieved is True)
    return percent(achieved, len(in_window))


# ======================================================================
# Main entry point
# ======================================================================


def compute_progress(session: Session, athlete_id: int, today: datetime.date,
                     config: Optional[AnalyticsConfig] = None, ) -> ProgressResponse:
    """Compute every progress metric for ``athlete_id`` as of ``today``.

    Args:
        session: Database session.
        athlete_id: Athlete ID.
        today: Athlete-local reference date.
        config: Optional :class:`AnalyticsConfig` override.
    """
    cfg = config or DEFAULT_CONFIG
    sessions_repo = TrainingSessionRepository(session)
    checkin_repo = CheckinRepository(session)

    # --- Streaks ---
    completed_dates = sessions_repo.get_completed_dates(athlete_id)

    # --- Consistency window ---
    consistency_start = _window_start(today, cfg.consistency_window_days)
    window_sessions = sessions_repo.get_by_athlete_date_range(athlete_id, consistency_start, today)

    # --- Goal window ---
    goal_start = _window_start(today, cfg.goal_window_days)
    goals = checkin_repo.get_goals_of_completed_sessions(athlete_id, goal_start, today)

    # --- Totals ---
    counts = sessions_repo.count_by_status(athlete_id)
    completed = counts[SessionStatus.COMPLETED]
    absent = counts[SessionStatus.ABSENT]
    average = ReflectionRepository(session).average_rating(athlete_id)

    return ProgressResponse(as_of=today, current_streak_days=current_streak(completed_dates, today),
                            longest_streak_days=longest_streak(completed_dates),
                            consistency_percent=rolling_consistency(window_sessions, today,
                                                                    cfg.consistency_window_days),
                            consistency_window_days=cfg.consistency_window_days,
                            goal_completion_percent=goal_completion_rate(goals, today, cfg.goal_window_days),
                            goal_window_days=cfg.goal_window_days, total_sessions=sum(counts.values()),
                            completed_sessions=completed, absent_sessions=absent,
                            completion_rate_percent=percent(completed, completed + absent),
                            total_stars=StarAwardRepository(session).total_stars(athlete_id),
                            average_rating=round(average, 1) if average is not None else None, )
