"""
Schedule service.

Weekly templates are create/delete only.  Creating one immediately
materializes the athlete's horizon so the new slot shows up without
waiting for the nightly sweep; deleting one leaves already generated
sessions in place.
"""

import datetime
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.config import Settings, settings as default_settings
from app.db.repositories.athlete import AthleteRepository
from app.db.repositories.schedule import ScheduleRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.engine.materializer import materialize_horizon
from app.engine.timeutils import local_today, utcnow
from app.models.athlete import Athlete
from app.models.schedule_template import ScheduleTemplate
from app.schemas.schedule import (ScheduleCreatedResponse, ScheduleTemplateCreate, ScheduleTemplateResponse, )

logger = logging.getLogger(__name__)


class ScheduleService:
    """Service for weekly schedule templates."""

    def __init__(self, session: Session, config: Optional[Settings] = None):
        self.session = session
        self.settings = config or default_settings
        self.repository = ScheduleRepository(session)
        self.sessions = TrainingSessionRepository(session)
        self.athletes = AthleteRepository(session)

    def create(self, athlete_id: int, data: ScheduleTemplateCreate,
               now: Optional[datetime.datetime] = None, ) -> ScheduleCreatedResponse:
        athlete = self._get_athlete(athlete_id)

        if self.repository.get_slot(athlete_id, data.day_of_week, data.start_time, data.end_time):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A template already covers this slot", )

        template = ScheduleTemplate(athlete_id=athlete_id, day_of_week=data.day_of_week, start_time=data.start_time,
                                    end_time=data.end_time, kind=data.kind, )
        try:
            template = self.repository.create(template)
        except IntegrityError:
            self.session.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A template already covers this slot", )

        today = local_today(now or utcnow(), athlete.timezone)
        result = materialize_horizon(self.repository, self.sessions, today,
                                     horizon_days=self.settings.SESSION_HORIZON_DAYS, athlete_id=athlete_id, )
        logger.info("Template %s added for athlete %s; %d session(s) created", template.id, athlete_id,
                    result.inserted)

        return ScheduleCreatedResponse(template=ScheduleTemplateResponse.model_validate(template),
                                       sessions_created=result.inserted, )

    def list_templates(self, athlete_id: int) -> list[ScheduleTemplate]:
        self._get_athlete(athlete_id)
        return self.repository.get_by_athlete(athlete_id)

    def delete(self, athlete_id: int, template_id: int) -> None:
        template = self.repository.get_by_id(template_id)
        if not template or template.athlete_id != athlete_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule template not found", )
        self.repository.delete(template_id)

    def _get_athlete(self, athlete_id: int) -> Athlete:
        athlete = self.athletes.get_by_id(athlete_id)
        if not athlete:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Athlete not found")
        return athlete
