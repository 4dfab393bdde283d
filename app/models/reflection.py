"""
Post-session records: training notes, the reflection, and star awards.
"""

import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class TrainingNote(SQLModel, table=True):
    """Free-form note captured while training."""

    __tablename__ = "training_notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="training_sessions.id", nullable=False, index=True)
    note_text: str = Field(nullable=False, max_length=2000)
    category: str = Field(nullable=False, max_length=100)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)


class SessionReflection(SQLModel, table=True):
    """Reflection written once when the session is completed."""

    __tablename__ = "session_reflections"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="training_sessions.id", nullable=False, unique=True, index=True)
    what_went_well: str = Field(nullable=False, max_length=2000)
    what_didnt_go_well: str = Field(nullable=False, max_length=2000)
    what_to_do_different: str = Field(nullable=False, max_length=2000)
    most_proud_of: str = Field(nullable=False, max_length=2000)
    overall_rating: int = Field(nullable=False, ge=1, le=5)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)


class StarAward(SQLModel, table=True):
    """One star per completed session.

    ``session_id`` is unique and not a foreign key: stars
    outlive the retention cleanup of their session.
    """

    __tablename__ = "user_stars"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="athletes.id", nullable=False, index=True)
    session_id: int = Field(nullable=False, unique=True, index=True)
    stars_earned: int = Field(default=1, nullable=False)
    reward_criteria: Optional[str] = Field(default=None, max_length=500)

    earned_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
