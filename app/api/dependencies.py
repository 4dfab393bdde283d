"""
Shared API dependencies.

Reusable FastAPI dependencies for settings, athlete lookup and the
maintenance trigger secret.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from app.core.config import Settings, settings
from app.core.security import verify_cron_secret
from app.db.session import get_db
from app.models.athlete import Athlete
from app.services.athlete_service import AthleteService


def get_settings() -> Settings:
    """Application settings (overridden in tests)."""
    return settings


def get_athlete(athlete_id: int, db: Session = Depends(get_db)) -> Athlete:
    """Resolve the ``athlete_id`` path parameter or fail with 404."""
    return AthleteService(db).get(athlete_id)


def require_cron_secret(authorization: Optional[str] = Header(None),
                        config: Settings = Depends(get_settings), ) -> None:
    """Check ``Authorization: Bearer <CRON_SECRET>``; open when no secret is set."""
    verify_cron_secret(authorization, config.CRON_SECRET)
