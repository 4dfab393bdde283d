"""Pydantic schemas for request/response validation."""

from app.schemas.athlete import AthleteCreate, AthleteResponse, AthleteUpdate
from app.schemas.schedule import ScheduleCreatedResponse, ScheduleTemplateCreate, ScheduleTemplateResponse
from app.schemas.training_session import (
    AbsenceSubmit,
    CheckinResponse,
    CheckinSubmit,
    CompletionResponse,
    ExtraSessionCreate,
    GoalAssessment,
    GoalResponse,
    OverdueResolution,
    ReflectionResponse,
    ReflectionSubmit,
    SessionDetailResponse,
    SessionResponse,
    StarBackfillResponse,
    TrainingNoteCreate,
    TrainingNoteResponse,
)
from app.schemas.analytics import ProgressResponse
from app.schemas.maintenance import MaintenanceRunResponse, SweepResponse

__all__ = [
    "AthleteCreate",
    "AthleteResponse",
    "AthleteUpdate",
    "ScheduleCreatedResponse",
    "ScheduleTemplateCreate",
    "ScheduleTemplateResponse",
    "AbsenceSubmit",
    "CheckinResponse",
    "CheckinSubmit",
    "CompletionResponse",
    "ExtraSessionCreate",
    "GoalAssessment",
    "GoalResponse",
    "OverdueResolution",
    "ReflectionResponse",
    "ReflectionSubmit",
    "SessionDetailResponse",
    "SessionResponse",
    "StarBackfillResponse",
    "TrainingNoteCreate",
    "TrainingNoteResponse",
    "ProgressResponse",
    "MaintenanceRunResponse",
    "SweepResponse",
]
