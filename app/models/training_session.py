"""
Training session database model.

A session is one concrete, dated occurrence of training.  ``status`` is
the authoritative lifecycle marker; the richer lifecycle *state* shown to
users is derived from it by :mod:`app.engine.state_machine` and never
stored.
"""

import datetime
import enum
from typing import Optional

from sqlalchemy import Column, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class SessionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABSENT = "absent"


class SessionKind(str, enum.Enum):
    REGULAR = "regular"
    COMPETITION = "competition"
    EXTRA = "extra"


NON_TERMINAL_STATUSES: tuple[SessionStatus, ...] = (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS)
TERMINAL_STATUSES: tuple[SessionStatus, ...] = (SessionStatus.COMPLETED, SessionStatus.CANCELLED,
                                                SessionStatus.ABSENT)
# Statuses eligible for retention cleanup
PRUNABLE_STATUSES: tuple[SessionStatus, ...] = (SessionStatus.COMPLETED, SessionStatus.ABSENT)


class TrainingSession(SQLModel, table=True):
    """A single dated training session.

    At most one session exists per ``(athlete_id, scheduled_date,
    start_time, end_time)``; the materializer relies on this constraint
    for its conditional insert.
    """

    __tablename__ = "training_sessions"
    __table_args__ = (
        UniqueConstraint("athlete_id", "scheduled_date", "start_time", "end_time", name="uq_session_athlete_slot", ),)

    id: Optional[int] = Field(default=None, primary_key=True)
    athlete_id: int = Field(foreign_key="athletes.id", nullable=False, index=True)
    scheduled_date: datetime.date = Field(nullable=False, index=True)
    start_time: datetime.time = Field(nullable=False)
    end_time: datetime.time = Field(nullable=False)
    kind: SessionKind = Field(default=SessionKind.REGULAR, sa_column=Column(
        SAEnum(SessionKind, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False, ), )
    status: SessionStatus = Field(default=SessionStatus.SCHEDULED, sa_column=Column(
        SAEnum(SessionStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False, index=True, ), )
    absence_reason: Optional[str] = Field(default=None, max_length=500)

    # Timestamps
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
