"""
Athlete repository.

Handles database operations for the Athlete profile.
"""

from typing import Iterable, Optional

from sqlmodel import Session, select

from app.models.athlete import Athlete


class AthleteRepository:
    """Repository for Athlete database operations."""

    def __init__(self, session: Session):
        """
        Initialize repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    def create(self, athlete: Athlete) -> Athlete:
        """
        Create a new athlete in the database.

        Args:
            athlete: Athlete instance to create

        Returns:
            Created athlete with generated id
        """
        self.session.add(athlete)
        self.session.commit()
        self.session.refresh(athlete)
        return athlete

    def get_by_id(self, athlete_id: int) -> Optional[Athlete]:
        return self.session.get(Athlete, athlete_id)

    def get_by_email(self, email: str) -> Optional[Athlete]:
        statement = select(Athlete).where(Athlete.email == email)
        return self.session.exec(statement).first()

    def get_timezones(self, athlete_ids: Iterable[int]) -> dict[int, str]:
        """
        Map athlete ids to their IANA timezone.

        Args:
            athlete_ids: Ids to look up (duplicates allowed)

        Returns:
            ``{athlete_id: timezone}`` for the athletes that exist
        """
        ids = sorted(set(athlete_ids))
        if not ids:
            return { }
        statement = select(Athlete.id, Athlete.timezone).where(Athlete.id.in_(ids))
        return { athlete_id: timezone for athlete_id, timezone in self.session.exec(statement).all() }

    def update(self, athlete: Athlete) -> Athlete:
        self.session.add(athlete)
        self.session.commit()
        self.session.refresh(athlete)
        return athlete

    def exists_by_email(self, email: str) -> bool:
        return self.get_by_email(email) is not None
