"""Shared fixtures: in-memory SQLite store, settings and row builders."""

import datetime
from typing import Optional

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.core.config import Settings
from app.db.init_db import init_db
from app.db.session import make_session_factory
from app.models.athlete import Athlete
from app.models.schedule_template import ScheduleTemplate
from app.models.training_session import SessionKind, SessionStatus, TrainingSession


@pytest.fixture
def engine():
    """One in-memory database per test, shared by every session and thread."""
    engine = create_engine("sqlite://", connect_args={ "check_same_thread": False }, poolclass=StaticPool)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, DATABASE_URL_OVERRIDE="sqlite://", CRON_SECRET=None,
                    SWEEP_PHASE_TIMEOUT_SECONDS=30.0, )


# ======================================================================
# Row builders
# ======================================================================


def make_athlete(db: Session, email: str = "ada@example.com", timezone: str = "UTC") -> Athlete:
    athlete = Athlete(email=email, first_name="Ada", timezone=timezone)
    db.add(athlete)
    db.commit()
    db.refresh(athlete)
    return athlete


def make_template(db: Session, athlete_id: int, day_of_week: int, start: str = "15:00", end: str = "17:00",
                  kind: SessionKind = SessionKind.REGULAR, ) -> ScheduleTemplate:
    template = ScheduleTemplate(athlete_id=athlete_id, day_of_week=day_of_week,
                                start_time=datetime.time.fromisoformat(start),
                                end_time=datetime.time.fromisoformat(end), kind=kind, )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def make_session(db: Session, athlete_id: int, scheduled_date: datetime.date, start: str = "15:00",
                 end: str = "17:00", status: SessionStatus = SessionStatus.SCHEDULED,
                 absence_reason: Optional[str] = None, ) -> TrainingSession:
    entry = TrainingSession(athlete_id=athlete_id, scheduled_date=scheduled_date,
                            start_time=datetime.time.fromisoformat(start), end_time=datetime.time.fromisoformat(end),
                            status=status, absence_reason=absence_reason, )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
