"""
Weekly schedule template model.

One row per (athlete, day-of-week, time range, kind).  A template fully
determines every future session on that weekday/time until deleted;
there is no update-in-place.
"""

import datetime
from typing import Optional

from sqlalchemy import Column, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from app.models.training_session import SessionKind


class ScheduleTemplate(SQLModel, table=True):
    """Recurring weekly availability rule.

    ``day_of_week`` is Sunday-based: 0 = Sunday, 1 = Monday … 6 = Saturday.
    """

    __tablename__ = "training_schedules"
    __table_args__ = (
        UniqueConstraint("athlete_id", "day_of_week", "start_time", "end_time", name="uq_schedule_athlete_slot", ),)

    id: Optional[int] = Field(default=None, primary_key=True)
    athlete_id: int = Field(foreign_key="athletes.id", nullable=False, index=True)
    day_of_week: int = Field(nullable=False, ge=0, le=6)
    start_time: datetime.time = Field(nullable=False)
    end_time: datetime.time = Field(nullable=False)
    kind: SessionKind = Field(default=SessionKind.REGULAR, sa_column=Column(
        SAEnum(SessionKind, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False, ), )

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
