"""
Session API schemas.

Every session payload carries the derived lifecycle ``state`` and the
``action`` the client should offer; neither is stored.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.engine.state_machine import SessionAction, SessionState
from app.models.training_session import SessionKind, SessionStatus

MAX_GOALS = 3


class ExtraSessionCreate(BaseModel):
    """Schema for a one-off session outside the weekly template."""

    scheduled_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time

    @model_validator(mode="after")
    def _end_after_start(self) -> "ExtraSessionCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionResponse(BaseModel):
    """Schema for a session in API responses."""

    id: int
    athlete_id: int
    scheduled_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    kind: SessionKind
    status: SessionStatus
    absence_reason: Optional[str]
    state: SessionState
    action: SessionAction
    has_checkin: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


# ----------------------------------------------------------------------
# Check-in
# ----------------------------------------------------------------------


class CheckinSubmit(BaseModel):
    """Pre-training check-in; resubmitting overwrites the previous one."""

    energy_level: int = Field(..., ge=1, le=5)
    mindset_level: int = Field(..., ge=1, le=5)
    reward_criteria: Optional[str] = Field(None, max_length=500, description="Reward for completing the session")
    goals: list[str] = Field(default_factory=list, max_length=MAX_GOALS,
                             description="Goal texts, matched to existing goals by position")

    @field_validator("goals")
    @classmethod
    def strip_goals(cls, v: list[str]) -> list[str]:
        goals = [text.strip() for text in v if text.strip()]
        if any(len(text) > 500 for text in goals):
            raise ValueError("Goal text must be at most 500 characters")
        return goals


class GoalResponse(BaseModel):
    id: int
    goal_text: str
    achieved: Optional[bool]

    class Config:
        from_attributes = True


class CheckinResponse(BaseModel):
    session_id: int
    energy_level: int
    mindset_level: int
    reward_criteria: Optional[str]
    goals: list[GoalResponse]
    created_at: datetime.datetime
    updated_at: datetime.datetime


# ----------------------------------------------------------------------
# Training notes
# ----------------------------------------------------------------------


class TrainingNoteCreate(BaseModel):
    note_text: str = Field(..., min_length=1, max_length=2000)
    category: str = Field("general", min_length=1, max_length=100)


class TrainingNoteResponse(BaseModel):
    id: int
    session_id: int
    note_text: str
    category: str
    created_at: datetime.datetime

    class Config:
        from_attributes = True


# ----------------------------------------------------------------------
# Reflection / completion
# ----------------------------------------------------------------------


class GoalAssessment(BaseModel):
    goal_id: int
    achieved: Optional[bool] = None


class ReflectionSubmit(BaseModel):
    """Completes the session: reflection, goal outcomes, star."""

    what_went_well: str = Field(..., min_length=1, max_length=2000)
    what_didnt_go_well: str = Field(..., min_length=1, max_length=2000)
    what_to_do_different: str = Field(..., min_length=1, max_length=2000)
    most_proud_of: str = Field(..., min_length=1, max_length=2000)
    overall_rating: int = Field(..., ge=1, le=5)
    goal_assessments: list[GoalAssessment] = Field(default_factory=list)


class ReflectionResponse(BaseModel):
    session_id: int
    what_went_well: str
    what_didnt_go_well: str
    what_to_do_different: str
    most_proud_of: str
    overall_rating: int
    rating_label: str
    created_at: datetime.datetime


class CompletionResponse(BaseModel):
    session: SessionResponse
    reflection: ReflectionResponse
    star_awarded: bool = Field(..., description="False when the star already existed (retry)")


# ----------------------------------------------------------------------
# Absence / overdue resolution
# ----------------------------------------------------------------------


class AbsenceSubmit(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("An absence reason is required")
        return v.strip()


class OverdueResolution(BaseModel):
    """Resolve an overdue session as absent (with reason) or completed (with reflection)."""

    outcome: SessionStatus = Field(..., description="absent or completed")
    reason: Optional[str] = Field(None, max_length=500)
    reflection: Optional[ReflectionSubmit] = None

    @model_validator(mode="after")
    def _outcome_payload(self) -> "OverdueResolution":
        if self.outcome == SessionStatus.ABSENT:
            if not self.reason or not self.reason.strip():
                raise ValueError("An absence reason is required")
        elif self.outcome == SessionStatus.COMPLETED:
            if self.reflection is None:
                raise ValueError("A reflection is required to complete the session")
        else:
            raise ValueError("outcome must be 'absent' or 'completed'")
        return self


# ----------------------------------------------------------------------
# Detail / stars
# ----------------------------------------------------------------------


class SessionDetailResponse(BaseModel):
    session: SessionResponse
    checkin: Optional[CheckinResponse]
    notes: list[TrainingNoteResponse]
    reflection: Optional[ReflectionResponse]
    stars: int


class StarBackfillResponse(BaseModel):
    awarded: int
    total_stars: int
