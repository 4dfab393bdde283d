"""Reflection and training-note repository."""

from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.reflection import SessionReflection, TrainingNote
from app.models.training_session import SessionStatus, TrainingSession


class ReflectionRepository:
    """Repository for SessionReflection and TrainingNote operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_session(self, session_id: int) -> Optional[SessionReflection]:
        statement = select(SessionReflection).where(SessionReflection.session_id == session_id)
        return self.session.exec(statement).first()

    def add(self, reflection: SessionReflection) -> SessionReflection:
        """Stage a new reflection.  Does not commit."""
        self.session.add(reflection)
        return reflection

    def average_rating(self, athlete_id: int) -> Optional[float]:
        """Mean ``overall_rating`` over the athlete's completed sessions."""
        statement = (select(func.avg(SessionReflection.overall_rating)).join(TrainingSession,
                                                                            SessionReflection.session_id ==
                                                                            TrainingSession.id).where(
            TrainingSession.athlete_id == athlete_id, TrainingSession.status == SessionStatus.COMPLETED, ))
        value = self.session.exec(statement).first()
        return float(value) if value is not None else None

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def add_note(self, note: TrainingNote) -> TrainingNote:
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def get_notes(self, session_id: int) -> list[TrainingNote]:
        statement = select(TrainingNote).where(TrainingNote.session_id == session_id).order_by(TrainingNote.id)
        return list(self.session.exec(statement).all())
