"""
Session service.

Manual lifecycle actions.  Every action first derives the session's
state through :mod:`app.engine.state_machine` and refuses with 409 when
the state does not permit it; status changes are compare-and-swap
updates, so a request racing the maintenance sweep (or another request)
fails cleanly instead of overwriting a terminal status.
"""

import datetime
import logging
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.config import Settings, settings as default_settings
from app.db.repositories.athlete import AthleteRepository
from app.db.repositories.checkin import CheckinRepository
from app.db.repositories.reflection import ReflectionRepository
from app.db.repositories.star_award import StarAwardRepository
from app.db.repositories.training_session import TrainingSessionRepository
from app.engine.state_machine import (
    CHECKIN_EDITABLE_STATES,
    COMPLETABLE_STATES,
    TRAINING_STATES,
    SessionState,
    StateMachineConfig,
    describe,
)
from app.engine.timeutils import local_today, utcnow
from app.models.athlete import Athlete
from app.models.checkin import PreTrainingCheckin
from app.models.reflection import SessionReflection, TrainingNote
from app.models.training_session import (
    NON_TERMINAL_STATUSES,
    SessionKind,
    SessionStatus,
    TrainingSession,
)
from app.schemas.training_session import (
    AbsenceSubmit,
    CheckinResponse,
    CheckinSubmit,
    CompletionResponse,
    ExtraSessionCreate,
    GoalResponse,
    OverdueResolution,
    ReflectionResponse,
    ReflectionSubmit,
    SessionDetailResponse,
    SessionResponse,
    StarBackfillResponse,
    TrainingNoteCreate,
    TrainingNoteResponse,
)

logger = logging.getLogger(__name__)


class SessionService:
    """Service for session lifecycle business logic."""

    def __init__(self, session: Session, config: Optional[Settings] = None):
        self.session = session
        self.settings = config or default_settings
        self.state_config = StateMachineConfig.from_settings(self.settings)
        self.repository = TrainingSessionRepository(session)
        self.athletes = AthleteRepository(session)
        self.checkins = CheckinRepository(session)
        self.reflections = ReflectionRepository(session)
        self.stars = StarAwardRepository(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_sessions(self, athlete_id: int, start: Optional[datetime.date] = None,
                      end: Optional[datetime.date] = None,
                      now: Optional[datetime.datetime] = None, ) -> list[SessionResponse]:
        """Sessions in ``[start, end]``; defaults to the materialization horizon."""
        athlete = self._get_athlete(athlete_id)
        now = now or utcnow()
        if start is None or end is None:
            today = local_today(now, athlete.timezone)
            start = start or today
            end = end or today + datetime.timedelta(days=self.settings.SESSION_HORIZON_DAYS)
        if end < start:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end must not precede start", )

        entries = self.repository.get_by_athlete_date_range(athlete_id, start, end)
        checkins = self.checkins.get_by_sessions(e.id for e in entries)
        return [self._to_response(e, checkins.get(e.id), athlete, now) for e in entries]

    def get_next_session(self, athlete_id: int, now: Optional[datetime.datetime] = None) -> Optional[SessionResponse]:
        """The earliest open session from today on, if any."""
        athlete = self._get_athlete(athlete_id)
        now = now or utcnow()
        entry = self.repository.get_next_open(athlete_id, local_today(now, athlete.timezone))
        if entry is None:
            return None
        return self._to_response(entry, self.checkins.get_by_session(entry.id), athlete, now)

    def get_session(self, athlete_id: int, session_id: int,
                    now: Optional[datetime.datetime] = None, ) -> SessionDetailResponse:
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        checkin = self.checkins.get_by_session(entry.id)
        reflection = self.reflections.get_by_session(entry.id)

        return SessionDetailResponse(session=self._to_response(entry, checkin, athlete, now or utcnow()),
                                     checkin=self._checkin_response(checkin) if checkin else None,
                                     notes=[TrainingNoteResponse.model_validate(n) for n in
                                            self.reflections.get_notes(entry.id)],
                                     reflection=self._reflection_response(reflection, athlete) if reflection else None,
                                     stars=self.stars.count_for_session(entry.id), )

    # ------------------------------------------------------------------
    # Extra sessions
    # ------------------------------------------------------------------

    def create_extra_session(self, athlete_id: int, data: ExtraSessionCreate,
                             now: Optional[datetime.datetime] = None, ) -> SessionResponse:
        """Add a one-off ``extra`` session on a date that is not in the past."""
        athlete = self._get_athlete(athlete_id)
        now = now or utcnow()
        if data.scheduled_date < local_today(now, athlete.timezone):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                                detail="Extra sessions cannot be scheduled in the past", )

        created_at = datetime.datetime.utcnow()
        row = { "athlete_id": athlete_id, "scheduled_date": data.scheduled_date, "start_time": data.start_time,
                "end_time": data.end_time, "kind": SessionKind.EXTRA, "status": SessionStatus.SCHEDULED,
                "absence_reason": None, "created_at": created_at, "updated_at": created_at, }
        if self.repository.insert_if_absent([row]) == 0:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="A session already exists for this date and time", )

        entry = next(e for e in self.repository.get_by_athlete_date_range(athlete_id, data.scheduled_date,
                                                                          data.scheduled_date)
                     if e.start_time == data.start_time and e.end_time == data.end_time)
        logger.info("Extra session %s created for athlete %s on %s", entry.id, athlete_id, data.scheduled_date)
        return self._to_response(entry, None, athlete, now)

    # ------------------------------------------------------------------
    # Check-in
    # ------------------------------------------------------------------

    def submit_checkin(self, athlete_id: int, session_id: int, data: CheckinSubmit,
                       now: Optional[datetime.datetime] = None, ) -> CheckinResponse:
        """Create or overwrite the check-in and its goals.

        Allowed while the check-in window is open and until training
        starts.
        """
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        existing = self.checkins.get_by_session(entry.id)
        self._require_state(entry, existing, athlete, now, CHECKIN_EDITABLE_STATES, "submit a check-in")

        try:
            # Staging autoflushes, so a conflicting insert can surface before the commit
            checkin = self.checkins.upsert(entry.id, data.energy_level, data.mindset_level, data.reward_criteria)
            self.checkins.sync_goal_texts(entry.id, data.goals)
            self.checkins.commit()
        except IntegrityError:
            # A concurrent first submission created the check-in
            self.session.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="Check-in was submitted concurrently; retry", )
        self.session.refresh(checkin)
        return self._checkin_response(checkin)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def start_training(self, athlete_id: int, session_id: int,
                       now: Optional[datetime.datetime] = None, ) -> SessionResponse:
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        checkin = self.checkins.get_by_session(entry.id)
        now = now or utcnow()
        state = self._require_state(entry, checkin, athlete, now, TRAINING_STATES, "start training")

        if state == SessionState.TRAINING_AVAILABLE:
            if not self.repository.transition_status(entry.id, [SessionStatus.SCHEDULED], SessionStatus.IN_PROGRESS):
                raise self._lost_race()
            entry = self.repository.get_by_id(entry.id)
        return self._to_response(entry, checkin, athlete, now)

    def add_note(self, athlete_id: int, session_id: int, data: TrainingNoteCreate,
                 now: Optional[datetime.datetime] = None, ) -> TrainingNote:
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        checkin = self.checkins.get_by_session(entry.id)
        self._require_state(entry, checkin, athlete, now, TRAINING_STATES, "add a training note")

        return self.reflections.add_note(TrainingNote(session_id=entry.id, note_text=data.note_text,
                                                      category=data.category))

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete_session(self, athlete_id: int, session_id: int, data: ReflectionSubmit,
                         now: Optional[datetime.datetime] = None, ) -> CompletionResponse:
        """Write the reflection, record goal outcomes, complete the session and award its star.

        Retrying after a successful completion returns the stored
        reflection and never grants a second star.
        """
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        checkin = self.checkins.get_by_session(entry.id)
        now = now or utcnow()

        if entry.status == SessionStatus.COMPLETED:
            return self._replay_completion(entry, checkin, athlete, now)

        self._require_state(entry, checkin, athlete, now, COMPLETABLE_STATES, "complete the session")
        return self._complete(entry, checkin, athlete, data, now)

    def _complete(self, entry: TrainingSession, checkin: Optional[PreTrainingCheckin], athlete: Athlete,
                  data: ReflectionSubmit, now: datetime.datetime) -> CompletionResponse:
        # Reflection, goals, status and star commit together or not at all
        try:
            reflection = self.reflections.add(
                SessionReflection(session_id=entry.id, what_went_well=data.what_went_well,
                                  what_didnt_go_well=data.what_didnt_go_well,
                                  what_to_do_different=data.what_to_do_different, most_proud_of=data.most_proud_of,
                                  overall_rating=data.overall_rating, ))
            # Autoflushes the reflection; a concurrent one fails here with IntegrityError
            self.checkins.set_achievements(entry.id, { a.goal_id: a.achieved for a in data.goal_assessments })

            if not self.repository.transition_status(entry.id, NON_TERMINAL_STATUSES, SessionStatus.COMPLETED,
                                                     commit=False):
                self.session.rollback()
                raise self._lost_race()
            awarded = self.stars.award_once(athlete.id, entry.id, checkin.reward_criteria if checkin else None)
            self.stars.assert_single_star(entry.id)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise self._lost_race()

        self.session.refresh(reflection)
        entry = self.repository.get_by_id(entry.id)
        logger.info("Session %s completed by athlete %s (star %s)", entry.id, athlete.id,
                    "awarded" if awarded else "already present")
        return CompletionResponse(session=self._to_response(entry, checkin, athlete, now),
                                  reflection=self._reflection_response(reflection, athlete), star_awarded=awarded, )

    def _replay_completion(self, entry: TrainingSession, checkin: Optional[PreTrainingCheckin], athlete: Athlete,
                           now: datetime.datetime) -> CompletionResponse:
        reflection = self.reflections.get_by_session(entry.id)
        if reflection is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="Session was completed without a reflection", )

        awarded = self.stars.award_once(athlete.id, entry.id, checkin.reward_criteria if checkin else None)
        self.stars.assert_single_star(entry.id)
        self.session.commit()
        return CompletionResponse(session=self._to_response(entry, checkin, athlete, now),
                                  reflection=self._reflection_response(reflection, athlete), star_awarded=awarded, )

    # ------------------------------------------------------------------
    # Absence / cancellation / overdue
    # ------------------------------------------------------------------

    def mark_absent(self, athlete_id: int, session_id: int, data: AbsenceSubmit,
                    now: Optional[datetime.datetime] = None, ) -> SessionResponse:
        return self._close(athlete_id, session_id, SessionStatus.ABSENT, data.reason, now)

    def cancel_session(self, athlete_id: int, session_id: int,
                       now: Optional[datetime.datetime] = None, ) -> SessionResponse:
        return self._close(athlete_id, session_id, SessionStatus.CANCELLED, None, now)

    def resolve_overdue(self, athlete_id: int, session_id: int, data: OverdueResolution,
                        now: Optional[datetime.datetime] = None, ) -> SessionResponse:
        """Close an overdue session as absent or completed."""
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        checkin = self.checkins.get_by_session(entry.id)
        now = now or utcnow()
        self._require_state(entry, checkin, athlete, now, { SessionState.OVERDUE }, "resolve the session")

        if data.outcome == SessionStatus.COMPLETED:
            return self._complete(entry, checkin, athlete, data.reflection, now).session
        return self._close(athlete_id, session_id, SessionStatus.ABSENT, data.reason.strip(), now)

    def _close(self, athlete_id: int, session_id: int, new_status: SessionStatus, reason: Optional[str],
               now: Optional[datetime.datetime]) -> SessionResponse:
        athlete = self._get_athlete(athlete_id)
        entry = self._get_owned_entry(athlete_id, session_id)
        if entry.is_terminal:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail=f"Session is already {SessionStatus(entry.status).value}", )

        if not self.repository.transition_status(entry.id, NON_TERMINAL_STATUSES, new_status, absence_reason=reason):
            raise self._lost_race()
        entry = self.repository.get_by_id(entry.id)
        logger.info("Session %s marked %s", entry.id, new_status.value)
        return self._to_response(entry, self.checkins.get_by_session(entry.id), athlete, now or utcnow())

    # ------------------------------------------------------------------
    # Stars
    # ------------------------------------------------------------------

    def award_missing_stars(self, athlete_id: int) -> StarBackfillResponse:
        """Grant the star of every completed session that lacks one."""
        self._get_athlete(athlete_id)
        missing = self.stars.get_completed_without_star(athlete_id)
        checkins = self.checkins.get_by_sessions(e.id for e in missing)

        awarded = 0
        for entry in missing:
            checkin = checkins.get(entry.id)
            if self.stars.award_once(athlete_id, entry.id, checkin.reward_criteria if checkin else None):
                awarded += 1
        self.session.commit()

        if awarded:
            logger.info("Backfilled %d star(s) for athlete %s", awarded, athlete_id)
        return StarBackfillResponse(awarded=awarded, total_stars=self.stars.total_stars(athlete_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_athlete(self, athlete_id: int) -> Athlete:
        athlete = self.athletes.get_by_id(athlete_id)
        if not athlete:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Athlete not found")
        return athlete

    def _get_owned_entry(self, athlete_id: int, session_id: int) -> TrainingSession:
        entry = self.repository.get_by_id(session_id)
        if not entry or entry.athlete_id != athlete_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
        return entry

    def _require_state(self, entry: TrainingSession, checkin: Optional[PreTrainingCheckin], athlete: Athlete,
                       now: Optional[datetime.datetime], allowed: Iterable[SessionState], verb: str, ) -> SessionState:
        state, _ = describe(entry, checkin, now or utcnow(), athlete.timezone, self.state_config)
        if state not in allowed:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail=f"Cannot {verb} while the session is {state.value}", )
        return state

    @staticmethod
    def _lost_race() -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT,
                             detail="Session status changed concurrently; reload and retry", )

    def _to_response(self, entry: TrainingSession, checkin: Optional[PreTrainingCheckin], athlete: Athlete,
                     now: datetime.datetime) -> SessionResponse:
        state, action = describe(entry, checkin, now, athlete.timezone, self.state_config)
        return SessionResponse(id=entry.id, athlete_id=entry.athlete_id, scheduled_date=entry.scheduled_date,
                               start_time=entry.start_time, end_time=entry.end_time, kind=entry.kind,
                               status=entry.status, absence_reason=entry.absence_reason, state=state, action=action,
                               has_checkin=checkin is not None, created_at=entry.created_at,
                               updated_at=entry.updated_at, )

    def _checkin_response(self, checkin: PreTrainingCheckin) -> CheckinResponse:
        goals = self.checkins.get_goals(checkin.session_id)
        return CheckinResponse(session_id=checkin.session_id, energy_level=checkin.energy_level,
                               mindset_level=checkin.mindset_level, reward_criteria=checkin.reward_criteria,
                               goals=[GoalResponse.model_validate(g) for g in goals], created_at=checkin.created_at,
                               updated_at=checkin.updated_at, )

    @staticmethod
    def _reflection_response(reflection: SessionReflection, athlete: Athlete) -> ReflectionResponse:
        labels = athlete.rating_labels or []
        index = reflection.overall_rating - 1
        label = labels[index] if 0 <= index < len(labels) else str(reflection.overall_rating)
        return ReflectionResponse(session_id=reflection.session_id, what_went_well=reflection.what_went_well,
                                  what_didnt_go_well=reflection.what_didnt_go_well,
                                  what_to_do_different=reflection.what_to_do_different,
                                  most_proud_of=reflection.most_proud_of, overall_rating=reflection.overall_rating,
                                  rating_label=label, created_at=reflection.created_at, )
