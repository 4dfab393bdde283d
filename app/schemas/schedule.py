"""
Weekly schedule template schemas.

``day_of_week`` is Sunday-based: 0 = Sunday … 6 = Saturday.
"""

import datetime

from pydantic import BaseModel, Field, model_validator

from app.models.training_session import SessionKind


class ScheduleTemplateCreate(BaseModel):
    """Schema for adding a recurring weekly slot."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday … 6 = Saturday")
    start_time: datetime.time
    end_time: datetime.time
    kind: SessionKind = Field(SessionKind.REGULAR, description="regular, competition or extra")

    @model_validator(mode="after")
    def _end_after_start(self) -> "ScheduleTemplateCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleTemplateResponse(BaseModel):
    id: int
    athlete_id: int
    day_of_week: int
    start_time: datetime.time
    end_time: datetime.time
    kind: SessionKind
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class ScheduleCreatedResponse(BaseModel):
    """The new template plus the sessions materialized for it."""

    template: ScheduleTemplateResponse
    sessions_created: int
