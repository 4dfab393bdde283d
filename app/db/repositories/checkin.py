"""
Check-in and goal repository.

Includes the goal queries used by the goal-completion analytics.
"""

import datetime
from typing import Iterable, Optional

from sqlmodel import Session, select

from app.models.checkin import PreTrainingCheckin, SessionGoal
from app.models.training_session import SessionStatus, TrainingSession


class CheckinRepository:
    """Repository for PreTrainingCheckin and SessionGoal operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_session(self, session_id: int) -> Optional[PreTrainingCheckin]:
        statement = select(PreTrainingCheckin).where(PreTrainingCheckin.session_id == session_id)
        return self.session.exec(statement).first()

    def get_by_sessions(self, session_ids: Iterable[int]) -> dict[int, PreTrainingCheckin]:
        ids = list(set(session_ids))
        if not ids:
            return { }
        statement = select(PreTrainingCheckin).where(PreTrainingCheckin.session_id.in_(ids))
        return { c.session_id: c for c in self.session.exec(statement).all() }

    def upsert(self, session_id: int, energy_level: int, mindset_level: int,
               reward_criteria: Optional[str], ) -> PreTrainingCheckin:
        """Create the session's check-in or overwrite the existing one.

        Does not commit; the caller commits together with the goals.
        """
        checkin = self.get_by_session(session_id)
        if checkin is None:
            checkin = PreTrainingCheckin(session_id=session_id, energy_level=energy_level,
                                         mindset_level=mindset_level, reward_criteria=reward_criteria, )
        else:
            checkin.energy_level = energy_level
            checkin.mindset_level = mindset_level
            checkin.reward_criteria = reward_criteria
            checkin.updated_at = datetime.datetime.utcnow()
        self.session.add(checkin)
        return checkin

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def get_goals(self, session_id: int) -> list[SessionGoal]:
        statement = select(SessionGoal).where(SessionGoal.session_id == session_id).order_by(SessionGoal.id)
        return list(self.session.exec(statement).all())

    def sync_goal_texts(self, session_id: int, texts: list[str]) -> list[SessionGoal]:
        """Overwrite goal texts positionally, appending new goals as needed.

        Existing goals beyond ``len(texts)`` are left untouched.  Does not
        commit.
        """
        existing = self.get_goals(session_id)
        goals: list[SessionGoal] = []
        for index, text in enumerate(texts):
            if index < len(existing):
                goal = existing[index]
                goal.goal_text = text
                goal.updated_at = datetime.datetime.utcnow()
            else:
                goal = SessionGoal(session_id=session_id, goal_text=text)
            self.session.add(goal)
            goals.append(goal)
        return goals

    def set_achievements(self, session_id: int, achievements: dict[int, Optional[bool]]) -> int:
        """Set ``achieved`` on the session's goals by goal id.  Does not commit.

        Returns:
            Number of goals updated (ids of other sessions are ignored).
        """
        updated = 0
        for goal in self.get_goals(session_id):
            if goal.id in achievements:
                goal.achieved = achievements[goal.id]
                goal.updated_at = datetime.datetime.utcnow()
                self.session.add(goal)
                updated += 1
        return updated

    def get_goals_of_completed_sessions(self, athlete_id: int, start: datetime.date,
                                        end: datetime.date, ) -> list[tuple[SessionGoal, datetime.date]]:
        """Goals of completed sessions scheduled in ``[start, end]`` with the session date."""
        statement = (select(SessionGoal, TrainingSession.scheduled_date).join(TrainingSession,
                                                                              SessionGoal.session_id ==
                                                                              TrainingSession.id).where(
            TrainingSession.athlete_id == athlete_id, TrainingSession.status == SessionStatus.COMPLETED,
            TrainingSession.scheduled_date >= start, TrainingSession.scheduled_date <= end, ))
        return [(goal, scheduled_date) for goal, scheduled_date in self.session.exec(statement).all()]

    def commit(self) -> None:
        self.session.commit()
