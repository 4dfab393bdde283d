"""
Star award repository.

Stars are granted with a conditional insert keyed on ``session_id``, so
retrying the completion path (or running the backfill twice) never
creates a second star for the same session.
"""

import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.errors import InvariantViolation
from app.db.upsert import insert_ignoring_conflicts
from app.models.reflection import StarAward
from app.models.training_session import SessionStatus, TrainingSession


class StarAwardRepository:
    """Repository for StarAward operations."""

    def __init__(self, session: Session):
        self.session = session

    def award_once(self, user_id: int, session_id: int, reward_criteria: Optional[str] = None) -> bool:
        """Grant the session's star unless it already has one.  Does not commit.

        Returns:
            True if a star was inserted.
        """
        row = { "user_id": user_id, "session_id": session_id, "stars_earned": 1, "reward_criteria": reward_criteria,
                "earned_at": datetime.datetime.utcnow(), }
        return insert_ignoring_conflicts(self.session, StarAward, [row], ("session_id",)) == 1

    def count_for_session(self, session_id: int) -> int:
        statement = select(func.count()).select_from(StarAward).where(StarAward.session_id == session_id)
        return self.session.exec(statement).first() or 0

    def assert_single_star(self, session_id: int) -> None:
        count = self.count_for_session(session_id)
        if count > 1:
            raise InvariantViolation(f"Session {session_id} holds {count} stars; expected at most one")

    def total_stars(self, user_id: int) -> int:
        statement = select(func.coalesce(func.sum(StarAward.stars_earned), 0)).where(StarAward.user_id == user_id)
        return int(self.session.exec(statement).first() or 0)

    def get_completed_without_star(self, user_id: int) -> list[TrainingSession]:
        """Completed sessions of ``user_id`` that have no star yet."""
        starred = select(StarAward.session_id).where(StarAward.user_id == user_id)
        statement = (select(TrainingSession).where(TrainingSession.athlete_id == user_id,
                                                   TrainingSession.status == SessionStatus.COMPLETED,
                                                   TrainingSession.id.not_in(starred), ).order_by(
            TrainingSession.scheduled_date.desc()))
        return list(self.session.exec(statement).all())
