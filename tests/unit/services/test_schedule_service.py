"""Tests for the athlete and schedule services."""

import datetime

import pytest
from fastapi import HTTPException
from sqlmodel import select

from app.models.training_session import TrainingSession
from app.schemas.athlete import AthleteCreate, AthleteUpdate
from app.schemas.schedule import ScheduleTemplateCreate
from app.services.athlete_service import AthleteService
from app.services.schedule_service import ScheduleService
from conftest import make_athlete

# Wednesday
NOW = datetime.datetime(2024, 1, 10, 9, 0, tzinfo=datetime.timezone.utc)
WEDNESDAY = 3


def _slot(day_of_week: int = WEDNESDAY, start: str = "15:00", end: str = "17:00") -> ScheduleTemplateCreate:
    return ScheduleTemplateCreate(day_of_week=day_of_week, start_time=datetime.time.fromisoformat(start),
                                  end_time=datetime.time.fromisoformat(end))


class TestAthleteService:
    def test_create_uses_default_labels(self, db):
        athlete = AthleteService(db).create(AthleteCreate(email="ada@example.com", first_name="Ada"))
        assert athlete.timezone == "UTC"
        assert len(athlete.rating_labels) == 5

    def test_duplicate_email(self, db):
        make_athlete(db)
        with pytest.raises(HTTPException) as exc_info:
            AthleteService(db).create(AthleteCreate(email="ada@example.com", first_name="Ada"))
        assert exc_info.value.status_code == 409

    def test_update_timezone_only(self, db):
        athlete = make_athlete(db)
        updated = AthleteService(db).update(athlete.id, AthleteUpdate(timezone="Europe/Rome"))
        assert updated.timezone == "Europe/Rome"
        assert updated.first_name == "Ada"

    def test_missing_athlete(self, db):
        with pytest.raises(HTTPException) as exc_info:
            AthleteService(db).get(999)
        assert exc_info.value.status_code == 404


class TestScheduleService:
    def test_create_materializes_horizon(self, db, test_settings):
        athlete = make_athlete(db)
        result = ScheduleService(db, test_settings).create(athlete.id, _slot(), now=NOW)

        # 2024-01-10 and 2024-01-17 fall inside the 8-day inclusive horizon
        assert result.sessions_created == 2
        dates = sorted(s.scheduled_date for s in db.exec(select(TrainingSession)).all())
        assert dates == [datetime.date(2024, 1, 10), datetime.date(2024, 1, 17)]

    def test_duplicate_slot_conflicts(self, db, test_settings):
        athlete = make_athlete(db)
        service = ScheduleService(db, test_settings)
        service.create(athlete.id, _slot(), now=NOW)
        with pytest.raises(HTTPException) as exc_info:
            service.create(athlete.id, _slot(), now=NOW)
        assert exc_info.value.status_code == 409

    def test_second_slot_same_day(self, db, test_settings):
        athlete = make_athlete(db)
        service = ScheduleService(db, test_settings)
        service.create(athlete.id, _slot(), now=NOW)
        result = service.create(athlete.id, _slot(start="18:00", end="19:00"), now=NOW)
        assert result.sessions_created == 2
        assert len(service.list_templates(athlete.id)) == 2

    def test_horizon_uses_athlete_zone(self, db, test_settings):
        # 23:30 UTC on Tuesday is already Wednesday in Rome
        athlete = make_athlete(db, timezone="Europe/Rome")
        late_tuesday = datetime.datetime(2024, 1, 9, 23, 30, tzinfo=datetime.timezone.utc)
        result = ScheduleService(db, test_settings).create(athlete.id, _slot(), now=late_tuesday)
        assert result.sessions_created == 2

    def test_delete_keeps_sessions(self, db, test_settings):
        athlete = make_athlete(db)
        service = ScheduleService(db, test_settings)
        template = service.create(athlete.id, _slot(), now=NOW).template
        service.delete(athlete.id, template.id)

        assert service.list_templates(athlete.id) == []
        assert len(db.exec(select(TrainingSession)).all()) == 2

    def test_delete_other_athletes_template(self, db, test_settings):
        owner = make_athlete(db)
        stranger = make_athlete(db, "other@example.com")
        service = ScheduleService(db, test_settings)
        template = service.create(owner.id, _slot(), now=NOW).template
        with pytest.raises(HTTPException) as exc_info:
            service.delete(stranger.id, template.id)
        assert exc_info.value.status_code == 404
