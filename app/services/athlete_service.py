"""
Athlete service.

Business logic for athlete profiles: timezone and rating labels.
"""

import datetime

from fastapi import HTTPException, status
from sqlmodel import Session

from app.db.repositories.athlete import AthleteRepository
from app.models.athlete import DEFAULT_RATING_LABELS, Athlete
from app.schemas.athlete import AthleteCreate, AthleteUpdate


class AthleteService:
    """Service for athlete-related business logic."""

    def __init__(self, session: Session):
        """
        Initialize service with database session.

        Args:
            session: SQLModel database session
        """
        self.repository = AthleteRepository(session)

    def create(self, data: AthleteCreate) -> Athlete:
        """
        Register a new athlete.

        Raises:
            HTTPException: If the email is already registered
        """
        if self.repository.exists_by_email(data.email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Athlete already registered")

        athlete = Athlete(email=data.email, first_name=data.first_name, last_name=data.last_name,
                          timezone=data.timezone, rating_labels=data.rating_labels or list(DEFAULT_RATING_LABELS), )
        return self.repository.create(athlete)

    def get(self, athlete_id: int) -> Athlete:
        athlete = self.repository.get_by_id(athlete_id)
        if not athlete:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Athlete not found")
        return athlete

    def update(self, athlete_id: int, data: AthleteUpdate) -> Athlete:
        athlete = self.get(athlete_id)

        # Only update fields that were actually provided
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(athlete, field, value)
        athlete.updated_at = datetime.datetime.utcnow()

        return self.repository.update(athlete)
