"""Repository tests on the in-memory SQLite store."""

import datetime

import pytest
from sqlalchemy import text
from sqlmodel import Session

from app.core.errors import InvariantViolation
from app.db.repositories.athlete import AthleteRepository
from app.db.repositories.checkin import CheckinRepository
from app.db.repositories.star_award import StarAwardRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.models.checkin import SessionGoal
from app.models.reflection import StarAward
from app.models.training_session import NON_TERMINAL_STATUSES, SessionKind, SessionStatus
from conftest import make_athlete, make_session

DAY = datetime.date(2024, 1, 10)


# ======================================================================
# Conditional status writes
# ======================================================================


class TestTransitionStatus:
    def test_updates_when_expected(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY)
        repo = TrainingSessionRepository(db)

        assert repo.transition_status(entry.id, [SessionStatus.SCHEDULED], SessionStatus.IN_PROGRESS)
        assert repo.get_by_id(entry.id).status == SessionStatus.IN_PROGRESS

    def test_lost_race_changes_nothing(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        repo = TrainingSessionRepository(db)

        assert not repo.transition_status(entry.id, NON_TERMINAL_STATUSES, SessionStatus.ABSENT,
                                          absence_reason="Session time has passed")
        stored = repo.get_by_id(entry.id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.absence_reason is None

    def test_bulk_transition_counts_only_matching_rows(self, db):
        athlete = make_athlete(db)
        open_a = make_session(db, athlete.id, DAY, start="08:00", end="09:00")
        open_b = make_session(db, athlete.id, DAY, start="10:00", end="11:00")
        done = make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)

        marked = TrainingSessionRepository(db).bulk_transition([open_a.id, open_b.id, done.id],
                                                               [SessionStatus.SCHEDULED], SessionStatus.ABSENT,
                                                               absence_reason="Sick", )
        assert marked == 2

    def test_bulk_transition_empty(self, db):
        assert TrainingSessionRepository(db).bulk_transition([], NON_TERMINAL_STATUSES, SessionStatus.ABSENT) == 0


class TestSlotUniqueness:
    def test_insert_if_absent_skips_existing_slot(self, db):
        athlete = make_athlete(db)
        make_session(db, athlete.id, DAY)
        row = { "athlete_id": athlete.id, "scheduled_date": DAY, "start_time": datetime.time(15),
                "end_time": datetime.time(17), "kind": SessionKind.REGULAR, "status": SessionStatus.SCHEDULED, "absence_reason": None,
                "created_at": datetime.datetime(2024, 1, 1), "updated_at": datetime.datetime(2024, 1, 1), }
        assert TrainingSessionRepository(db).insert_if_absent([row]) == 0

    def test_find_duplicate_slots_clean_store(self, db):
        athlete = make_athlete(db)
        make_session(db, athlete.id, DAY)
        make_session(db, athlete.id, DAY, start="08:00", end="09:00")
        assert TrainingSessionRepository(db).find_duplicate_slots(DAY, DAY) == []


class TestHistoryQueries:
    def test_completed_dates_distinct_newest_first(self, db):
        athlete = make_athlete(db)
        make_session(db, athlete.id, DAY, start="08:00", end="09:00", status=SessionStatus.COMPLETED)
        make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        make_session(db, athlete.id, DAY - datetime.timedelta(days=1), status=SessionStatus.COMPLETED)
        make_session(db, athlete.id, DAY - datetime.timedelta(days=2), status=SessionStatus.ABSENT)

        dates = TrainingSessionRepository(db).get_completed_dates(athlete.id)
        assert dates == [DAY, DAY - datetime.timedelta(days=1)]

    def test_next_open(self, db):
        athlete = make_athlete(db)
        make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        later = make_session(db, athlete.id, DAY + datetime.timedelta(days=2))
        make_session(db, athlete.id, DAY + datetime.timedelta(days=5))

        assert TrainingSessionRepository(db).get_next_open(athlete.id, DAY).id == later.id

    def test_count_by_status(self, db):
        athlete = make_athlete(db)
        make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        make_session(db, athlete.id, DAY + datetime.timedelta(days=1))

        counts = TrainingSessionRepository(db).count_by_status(athlete.id)
        assert counts[SessionStatus.COMPLETED] == 1
        assert counts[SessionStatus.SCHEDULED] == 1
        assert counts[SessionStatus.ABSENT] == 0


# ======================================================================
# Stars
# ======================================================================


class TestStarAward:
    def test_award_once(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        repo = StarAwardRepository(db)

        assert repo.award_once(athlete.id, entry.id, "Ice cream")
        db.commit()
        assert not repo.award_once(athlete.id, entry.id, "Ice cream")
        db.commit()

        assert repo.count_for_session(entry.id) == 1
        assert repo.total_stars(athlete.id) == 1

    def test_completed_without_star(self, db):
        athlete = make_athlete(db)
        starred = make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)
        missing = make_session(db, athlete.id, DAY + datetime.timedelta(days=1), status=SessionStatus.COMPLETED)
        make_session(db, athlete.id, DAY + datetime.timedelta(days=2), status=SessionStatus.ABSENT)
        db.add(StarAward(user_id=athlete.id, session_id=starred.id))
        db.commit()

        assert [s.id for s in StarAwardRepository(db).get_completed_without_star(athlete.id)] == [missing.id]

    def test_assert_single_star(self, engine, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY, status=SessionStatus.COMPLETED)

        # Simulate a store without the unique index on session_id
        with Session(engine) as raw:
            raw.execute(text("DROP INDEX ix_user_stars_session_id"))
            raw.execute(text("CREATE INDEX ix_user_stars_session_id ON user_stars (session_id)"))
            raw.commit()
        db.add(StarAward(user_id=athlete.id, session_id=entry.id))
        db.add(StarAward(user_id=athlete.id, session_id=entry.id))
        db.commit()

        with pytest.raises(InvariantViolation):
            StarAwardRepository(db).assert_single_star(entry.id)


# ======================================================================
# Check-ins, goals, athletes
# ======================================================================


class TestCheckinRepository:
    def test_upsert_overwrites(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY)
        repo = CheckinRepository(db)

        repo.upsert(entry.id, 2, 3, None)
        repo.commit()
        repo.upsert(entry.id, 5, 4, "Movie night")
        repo.commit()

        checkin = repo.get_by_session(entry.id)
        assert (checkin.energy_level, checkin.mindset_level, checkin.reward_criteria) == (5, 4, "Movie night")

    def test_sync_goal_texts_positional(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY)
        repo = CheckinRepository(db)

        repo.sync_goal_texts(entry.id, ["Serve", "Volley"])
        repo.commit()
        repo.sync_goal_texts(entry.id, ["Serve deep", "Volley", "Smash"])
        repo.commit()

        assert [g.goal_text for g in repo.get_goals(entry.id)] == ["Serve deep", "Volley", "Smash"]

    def test_set_achievements_ignores_foreign_goals(self, db):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, DAY)
        other = make_session(db, athlete.id, DAY + datetime.timedelta(days=1))
        repo = CheckinRepository(db)
        (mine,) = repo.sync_goal_texts(entry.id, ["Serve"])
        (theirs,) = repo.sync_goal_texts(other.id, ["Volley"])
        repo.commit()

        assert repo.set_achievements(entry.id, { mine.id: True, theirs.id: True }) == 1
        repo.commit()
        assert db.get(SessionGoal, theirs.id).achieved is None


class TestAthleteRepository:
    def test_get_timezones(self, db):
        rome = make_athlete(db, "r@example.com", timezone="Europe/Rome")
        utc = make_athlete(db, "u@example.com")

        zones = AthleteRepository(db).get_timezones([rome.id, utc.id, rome.id, 999])
        assert zones == { rome.id: "Europe/Rome", utc.id: "UTC" }

    def test_get_timezones_empty(self, db):
        assert AthleteRepository(db).get_timezones([]) == { }
