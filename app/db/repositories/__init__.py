"""Database repositories."""

from app.db.repositories.athlete import AthleteRepository
from app.db.repositories.schedule import ScheduleRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.db.repositories.checkin import CheckinRepository
from app.db.repositories.reflection import ReflectionRepository
from app.db.repositories.star_award import StarAwardRepository
from app.db.repositories.maintenance_run import MaintenanceRunRepository

__all__ = [
    "AthleteRepository",
    "ScheduleRepository",
    "TrainingSessionRepository",
    "CheckinRepository",
    "ReflectionRepository",
    "StarAwardRepository",
    "MaintenanceRunRepository",
]
