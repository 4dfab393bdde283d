"""Schedule template repository."""

import datetime
from typing import Optional

from sqlmodel import Session, select

from app.core.errors import store_operation
from app.models.schedule_template import ScheduleTemplate


class ScheduleRepository:
    """Repository for ScheduleTemplate database operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, template: ScheduleTemplate) -> ScheduleTemplate:
        self.session.add(template)
        self.session.commit()
        self.session.refresh(template)
        return template

    def get_by_id(self, template_id: int) -> Optional[ScheduleTemplate]:
        return self.session.get(ScheduleTemplate, template_id)

    def get_by_athlete(self, athlete_id: int) -> list[ScheduleTemplate]:
        statement = (select(ScheduleTemplate).where(ScheduleTemplate.athlete_id == athlete_id).order_by(
            ScheduleTemplate.day_of_week, ScheduleTemplate.start_time))
        return list(self.session.exec(statement).all())

    def get_all(self, athlete_id: Optional[int] = None) -> list[ScheduleTemplate]:
        """All templates, optionally restricted to one athlete."""
        with store_operation("get_all_templates"):
            statement = select(ScheduleTemplate).order_by(ScheduleTemplate.athlete_id, ScheduleTemplate.day_of_week,
                                                          ScheduleTemplate.start_time)
            if athlete_id is not None:
                statement = statement.where(ScheduleTemplate.athlete_id == athlete_id)
            return list(self.session.exec(statement).all())

    def get_slot(self, athlete_id: int, day_of_week: int, start_time: datetime.time,
                 end_time: datetime.time, ) -> Optional[ScheduleTemplate]:
        statement = select(ScheduleTemplate).where(ScheduleTemplate.athlete_id == athlete_id,
                                                   ScheduleTemplate.day_of_week == day_of_week,
                                                   ScheduleTemplate.start_time == start_time,
                                                   ScheduleTemplate.end_time == end_time, )
        return self.session.exec(statement).first()

    def delete(self, template_id: int) -> bool:
        template = self.get_by_id(template_id)
        if template:
            self.session.delete(template)
            self.session.commit()
            return True
        return False
