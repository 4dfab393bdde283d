"""Tests for the maintenance sweep against the in-memory store.

Assertions always read through a fresh session: the sweep writes from
its own sessions and worker threads.
"""

import datetime
import threading
from unittest.mock import MagicMock

import pytest
from sqlmodel import Session, select

from app.core.config import Settings
from app.core.errors import ConfigurationError, SweepAlreadyRunning, SweepFailed, TransientStoreError
from app.engine import sweep as sweep_module
from app.engine.sweep import (
    PHASE_CLEANUP,
    PHASE_MATERIALIZE,
    PHASE_RECONCILE,
    MaintenanceSweep,
    PhaseCancelled,
    apply_statement_deadline,
    clear_statement_deadline,
)
from app.models.athlete import Athlete
from app.models.checkin import PreTrainingCheckin, SessionGoal
from app.models.maintenance_run import RUN_FAILED, RUN_RUNNING, RUN_SUCCEEDED, MaintenanceRun
from app.models.reflection import SessionReflection, StarAward, TrainingNote
from app.models.training_session import SessionStatus, TrainingSession
from conftest import make_athlete, make_session, make_template

# Wednesday 2024-01-10, 06:00 UTC
NOW = datetime.datetime(2024, 1, 10, 6, 0, tzinfo=datetime.timezone.utc)
TODAY = NOW.date()


def _sessions(engine) -> list[TrainingSession]:
    with Session(engine) as s:
        return list(s.exec(select(TrainingSession).order_by(TrainingSession.scheduled_date)).all())


def _runs(engine) -> list[MaintenanceRun]:
    with Session(engine) as s:
        return list(s.exec(select(MaintenanceRun).order_by(MaintenanceRun.id)).all())


# ======================================================================
# Reconciliation
# ======================================================================


class TestReconcileOverdue:
    def test_past_sessions_become_absent(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        yesterday = make_session(db, athlete.id, TODAY - datetime.timedelta(days=1))
        started = make_session(db, athlete.id, TODAY - datetime.timedelta(days=2), status=SessionStatus.IN_PROGRESS)
        later_today = make_session(db, athlete.id, TODAY, start="15:00", end="17:00")

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert report.overdue_marked == 2
        by_id = {s.id: s for s in _sessions(engine)}
        assert by_id[yesterday.id].status == SessionStatus.ABSENT
        assert by_id[yesterday.id].absence_reason == "Session time has passed"
        assert by_id[started.id].status == SessionStatus.ABSENT
        assert by_id[later_today.id].status == SessionStatus.SCHEDULED

    def test_terminal_sessions_untouched(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        done = make_session(db, athlete.id, TODAY - datetime.timedelta(days=1), status=SessionStatus.COMPLETED)
        cancelled = make_session(db, athlete.id, TODAY - datetime.timedelta(days=1), start="08:00", end="09:00",
                                 status=SessionStatus.CANCELLED)

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert report.overdue_marked == 0
        by_id = {s.id: s for s in _sessions(engine)}
        assert by_id[done.id].status == SessionStatus.COMPLETED
        assert by_id[cancelled.id].status == SessionStatus.CANCELLED

    def test_end_is_evaluated_in_athlete_zone(self, engine, db, session_factory, test_settings):
        # 06:00 UTC is 01:00 in New York: yesterday's 19:00-21:00 session has ended,
        # a session at 00:30-01:30 local today has not
        athlete = make_athlete(db, timezone="America/New_York")
        ended = make_session(db, athlete.id, TODAY - datetime.timedelta(days=1), start="19:00", end="21:00")
        running = make_session(db, athlete.id, TODAY, start="00:30", end="01:30")

        MaintenanceSweep(session_factory, test_settings).run(NOW)

        by_id = {s.id: s for s in _sessions(engine)}
        assert by_id[ended.id].status == SessionStatus.ABSENT
        assert by_id[running.id].status == SessionStatus.SCHEDULED

    def test_session_ending_exactly_now_is_overdue(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        entry = make_session(db, athlete.id, TODAY, start="05:00", end="06:00")

        MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert _sessions(engine)[0].id == entry.id
        assert _sessions(engine)[0].status == SessionStatus.ABSENT


# ======================================================================
# Materialization and cleanup
# ======================================================================


class TestMaterializePhase:
    def test_creates_horizon(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        make_template(db, athlete.id, 3)  # Wednesdays

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert report.sessions_created == 2  # the 10th and the 17th
        assert [s.scheduled_date for s in _sessions(engine)] == [TODAY, TODAY + datetime.timedelta(days=7)]

    def test_rerun_is_idempotent(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        make_template(db, athlete.id, 3)
        make_session(db, athlete.id, TODAY - datetime.timedelta(days=3))
        sweep = MaintenanceSweep(session_factory, test_settings)

        first = sweep.run(NOW)
        snapshot = [(s.id, s.status, s.absence_reason) for s in _sessions(engine)]
        second = sweep.run(NOW)

        assert first.overdue_marked == 1
        assert second.overdue_marked == 0
        assert second.sessions_created == 0
        assert second.sessions_pruned == 0
        assert [(s.id, s.status, s.absence_reason) for s in _sessions(engine)] == snapshot

    def test_failure_is_fatal(self, engine, db, session_factory, test_settings, monkeypatch):
        athlete = make_athlete(db)
        make_session(db, athlete.id, TODAY - datetime.timedelta(days=1))
        make_session(db, athlete.id, TODAY - datetime.timedelta(days=60), status=SessionStatus.COMPLETED)

        def broken(*args, **kwargs):
            raise TransientStoreError("get_all_templates")

        monkeypatch.setattr(sweep_module, "materialize_horizon", broken)

        with pytest.raises(SweepFailed) as exc_info:
            MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert exc_info.value.phase == PHASE_MATERIALIZE
        statuses = sorted(s.status.value for s in _sessions(engine))
        # Reconciliation already ran; cleanup never did
        assert statuses == ["absent", "completed"]
        assert _runs(engine)[-1].status == RUN_FAILED


class TestCleanupPhase:
    def test_prunes_old_terminal_sessions_with_children(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        old_done = make_session(db, athlete.id, TODAY - datetime.timedelta(days=31), status=SessionStatus.COMPLETED)
        old_absent = make_session(db, athlete.id, TODAY - datetime.timedelta(days=45), status=SessionStatus.ABSENT)
        recent = make_session(db, athlete.id, TODAY - datetime.timedelta(days=29), status=SessionStatus.COMPLETED)
        old_cancelled = make_session(db, athlete.id, TODAY - datetime.timedelta(days=40),
                                     status=SessionStatus.CANCELLED)

        db.add(PreTrainingCheckin(session_id=old_done.id, energy_level=3, mindset_level=3))
        db.add(SessionGoal(session_id=old_done.id, goal_text="Footwork"))
        db.add(TrainingNote(session_id=old_done.id, note_text="Windy", category="general"))
        db.add(SessionReflection(session_id=old_done.id, what_went_well="w", what_didnt_go_well="d",
                                 what_to_do_different="n", most_proud_of="p", overall_rating=4, ))
        db.add(StarAward(user_id=athlete.id, session_id=old_done.id))
        db.commit()
        # Pruned rows cannot be refreshed after the sweep
        kept_ids = {recent.id, old_cancelled.id}
        pruned_ids = {old_done.id, old_absent.id}

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert report.sessions_pruned == 2
        remaining = {s.id for s in _sessions(engine)}
        assert remaining == kept_ids
        assert not remaining & pruned_ids
        with Session(engine) as s:
            assert s.exec(select(PreTrainingCheckin)).all() == []
            assert s.exec(select(SessionGoal)).all() == []
            assert s.exec(select(TrainingNote)).all() == []
            assert s.exec(select(SessionReflection)).all() == []
            # Stars outlive their session
            assert len(s.exec(select(StarAward)).all()) == 1

    def test_failure_is_not_fatal(self, engine, db, session_factory, test_settings, monkeypatch):
        def broken(self, cutoff, statuses):
            raise TransientStoreError("delete_terminal_before")

        monkeypatch.setattr("app.db.repositories.training_session.TrainingSessionRepository.delete_terminal_before",
                            broken)

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        assert not report.success
        assert [p.name for p in report.phases if not p.ok] == [PHASE_CLEANUP]
        assert _runs(engine)[-1].status == RUN_FAILED


# ======================================================================
# Guards and bookkeeping
# ======================================================================


class TestSweepGuards:
    def test_missing_configuration(self, session_factory):
        config = Settings(_env_file=None, DATABASE_URL_OVERRIDE=None, DATABASE_PASSWORD=None)
        with pytest.raises(ConfigurationError):
            MaintenanceSweep(session_factory, config).run(NOW)

    def test_in_process_lock(self, session_factory, test_settings):
        assert sweep_module._RUN_LOCK.acquire(blocking=False)
        try:
            with pytest.raises(SweepAlreadyRunning):
                MaintenanceSweep(session_factory, test_settings).run(NOW)
        finally:
            sweep_module._RUN_LOCK.release()

    def test_live_lease_blocks(self, engine, db, session_factory, test_settings):
        db.add(MaintenanceRun(started_at=NOW.replace(tzinfo=None) - datetime.timedelta(minutes=1),
                              status=RUN_RUNNING))
        db.commit()
        with pytest.raises(SweepAlreadyRunning):
            MaintenanceSweep(session_factory, test_settings).run(NOW)

    def test_expired_lease_is_taken_over(self, engine, db, session_factory, test_settings):
        db.add(MaintenanceRun(started_at=NOW.replace(tzinfo=None) - datetime.timedelta(hours=2), status=RUN_RUNNING))
        db.commit()

        MaintenanceSweep(session_factory, test_settings).run(NOW)

        stale, current = _runs(engine)
        assert stale.status == RUN_FAILED
        assert stale.error == "Lease expired"
        assert current.status == RUN_SUCCEEDED

    def test_run_is_recorded(self, engine, db, session_factory, test_settings):
        athlete = make_athlete(db)
        make_template(db, athlete.id, 3)

        report = MaintenanceSweep(session_factory, test_settings).run(NOW)

        (run,) = _runs(engine)
        assert run.status == RUN_SUCCEEDED
        assert run.sessions_created == report.sessions_created
        assert run.finished_at is not None
        assert [p.name for p in report.phases] == [PHASE_RECONCILE, PHASE_MATERIALIZE, PHASE_CLEANUP]

    def test_phase_timeout_is_a_phase_failure(self, engine, session_factory, monkeypatch):
        config = Settings(_env_file=None, DATABASE_URL_OVERRIDE="sqlite://", SWEEP_PHASE_TIMEOUT_SECONDS=0.5)
        release = threading.Event()

        def slow(self, db, now):
            release.wait(5)
            return 0

        monkeypatch.setattr(MaintenanceSweep, "_cleanup", slow)
        try:
            report = MaintenanceSweep(session_factory, config).run(NOW)
        finally:
            release.set()

        cleanup = report.phases[-1]
        assert cleanup.name == PHASE_CLEANUP
        assert not cleanup.ok
        assert "exceeded" in cleanup.error

    def test_timed_out_phase_cannot_write_afterwards(self, engine, db, session_factory, monkeypatch):
        athlete = make_athlete(db)
        athlete_id = athlete.id
        config = Settings(_env_file=None, DATABASE_URL_OVERRIDE="sqlite://", SWEEP_PHASE_TIMEOUT_SECONDS=0.5)
        release = threading.Event()
        finished = threading.Event()
        outcome = { }

        def slow(self, db, now):
            release.wait(5)
            try:
                row = db.exec(select(Athlete).where(Athlete.id == athlete_id)).one()
                row.timezone = "Europe/Rome"
                db.commit()
            except Exception as e:
                outcome["error"] = e
                raise
            finally:
                finished.set()
            return 0

        monkeypatch.setattr(MaintenanceSweep, "_cleanup", slow)
        try:
            report = MaintenanceSweep(session_factory, config).run(NOW)
        finally:
            release.set()

        assert finished.wait(5)
        assert not report.phases[-1].ok
        assert isinstance(outcome.get("error"), PhaseCancelled)
        with Session(engine) as s:
            assert s.get(Athlete, athlete_id).timezone == "UTC"


class TestStatementDeadline:
    def test_sets_and_resets_both_timeouts(self):
        connection = MagicMock()

        apply_statement_deadline(connection, 1.5)
        clear_statement_deadline(connection)

        issued = [c.args[0] for c in connection.exec_driver_sql.call_args_list]
        assert issued == ["SET statement_timeout = 1500", "SET lock_timeout = 1500", "RESET statement_timeout",
                          "RESET lock_timeout", ]
        assert connection.commit.call_count == 2

    @pytest.mark.parametrize("seconds, millis", [(60.0, 60000), (0.0001, 1)])
    def test_rounds_to_whole_milliseconds(self, seconds, millis):
        connection = MagicMock()
        apply_statement_deadline(connection, seconds)
        assert connection.exec_driver_sql.call_args_list[0].args[0] == f"SET statement_timeout = {millis}"
