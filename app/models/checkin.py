"""
Pre-training check-in and session goal models.
"""

import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class PreTrainingCheckin(SQLModel, table=True):
    """Zero-or-one check-in per session (``session_id`` is unique)."""

    __tablename__ = "pre_training_checkins"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="training_sessions.id", nullable=False, unique=True, index=True)
    energy_level: int = Field(nullable=False, ge=1, le=5)
    mindset_level: int = Field(nullable=False, ge=1, le=5)
    reward_criteria: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)


class SessionGoal(SQLModel, table=True):
    """A goal set during check-in.

    ``achieved`` is tri-state: ``None`` until assessed in the reflection.
    """

    __tablename__ = "session_goals"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="training_sessions.id", nullable=False, index=True)
    goal_text: str = Field(nullable=False, max_length=500)
    achieved: Optional[bool] = Field(default=None)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
