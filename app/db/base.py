"""
Base database configuration.

Import all models here so Alembic can detect them for migrations.
"""

# Import all models for Alembic autogenerate
from app.models.athlete import Athlete  # noqa: F401
from app.models.training_session import TrainingSession  # noqa: F401
from app.models.schedule_template import ScheduleTemplate  # noqa: F401
from app.models.checkin import PreTrainingCheckin, SessionGoal  # noqa: F401
from app.models.reflection import SessionReflection, StarAward, TrainingNote  # noqa: F401
from app.models.maintenance_run import MaintenanceRun  # noqa: F401
