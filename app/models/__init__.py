"""SQLModel database models."""

from app.models.athlete import Athlete
from app.models.training_session import SessionKind, SessionStatus, TrainingSession
from app.models.schedule_template import ScheduleTemplate
from app.models.checkin import PreTrainingCheckin, SessionGoal
from app.models.reflection import SessionReflection, StarAward, TrainingNote
from app.models.maintenance_run import MaintenanceRun

__all__ = [
    "Athlete",
    "SessionKind",
    "SessionStatus",
    "TrainingSession",
    "ScheduleTemplate",
    "PreTrainingCheckin",
    "SessionGoal",
    "SessionReflection",
    "StarAward",
    "TrainingNote",
    "MaintenanceRun",
]
