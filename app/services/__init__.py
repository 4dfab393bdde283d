"""Business logic services."""

from app.services.athlete_service import AthleteService
from app.services.schedule_service import ScheduleService
from app.services.session_service import SessionService

__all__ = [
    "AthleteService",
    "ScheduleService",
    "SessionService",
]
