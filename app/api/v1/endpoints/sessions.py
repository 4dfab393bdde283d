"""
Session endpoints.

Every session payload includes the derived ``state`` and ``action``.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.api.dependencies import get_settings
from app.core.config import Settings
from app.db.session import get_db
from app.schemas.training_session import (
    AbsenceSubmit,
    CheckinResponse,
    CheckinSubmit,
    CompletionResponse,
    ExtraSessionCreate,
    OverdueResolution,
    ReflectionSubmit,
    SessionDetailResponse,
    SessionResponse,
    StarBackfillResponse,
    TrainingNoteCreate,
    TrainingNoteResponse,
)
from app.services.session_service import SessionService

router = APIRouter()


def get_service(db: Session = Depends(get_db), config: Settings = Depends(get_settings)) -> SessionService:
    return SessionService(db, config)


@router.get("", summary="List sessions with their current state.", response_model=list[SessionResponse])
def list_sessions(athlete_id: int,
                  start: Optional[datetime.date] = Query(None, description="Range start (inclusive)"),
                  end: Optional[datetime.date] = Query(None, description="Range end (inclusive)"),
                  service: SessionService = Depends(get_service), ):
    # Default: today through the end of the horizon
    return service.list_sessions(athlete_id, start, end)


@router.get("/next", summary="Get the next open session.", response_model=Optional[SessionResponse])
def get_next_session(athlete_id: int, service: SessionService = Depends(get_service)):
    return service.get_next_session(athlete_id)


@router.post("/extra", summary="Add a one-off extra session.", response_model=SessionResponse,
             status_code=status.HTTP_201_CREATED, )
def create_extra_session(athlete_id: int, data: ExtraSessionCreate, service: SessionService = Depends(get_service)):
    return service.create_extra_session(athlete_id, data)


@router.post("/stars/award-missing", summary="Grant stars missing from completed sessions.",
             response_model=StarBackfillResponse, )
def award_missing_stars(athlete_id: int, service: SessionService = Depends(get_service)):
    return service.award_missing_stars(athlete_id)


@router.get("/{session_id}", summary="Get a session with check-in, notes and reflection.",
            response_model=SessionDetailResponse, )
def get_session(athlete_id: int, session_id: int, service: SessionService = Depends(get_service)):
    return service.get_session(athlete_id, session_id)


@router.put("/{session_id}/checkin", summary="Submit or update the pre-training check-in.",
            response_model=CheckinResponse, )
def submit_checkin(athlete_id: int, session_id: int, data: CheckinSubmit,
                   service: SessionService = Depends(get_service), ):
    return service.submit_checkin(athlete_id, session_id, data)


@router.post("/{session_id}/start", summary="Start training.", response_model=SessionResponse)
def start_training(athlete_id: int, session_id: int, service: SessionService = Depends(get_service)):
    return service.start_training(athlete_id, session_id)


@router.post("/{session_id}/notes", summary="Add a training note.", response_model=TrainingNoteResponse,
             status_code=status.HTTP_201_CREATED, )
def add_note(athlete_id: int, session_id: int, data: TrainingNoteCreate,
             service: SessionService = Depends(get_service), ):
    return service.add_note(athlete_id, session_id, data)


@router.post("/{session_id}/complete", summary="Submit the reflection and complete the session.",
             response_model=CompletionResponse, )
def complete_session(athlete_id: int, session_id: int, data: ReflectionSubmit,
                     service: SessionService = Depends(get_service), ):
    return service.complete_session(athlete_id, session_id, data)


@router.post("/{session_id}/absent", summary="Mark the session absent.", response_model=SessionResponse)
def mark_absent(athlete_id: int, session_id: int, data: AbsenceSubmit, service: SessionService = Depends(get_service)):
    return service.mark_absent(athlete_id, session_id, data)


@router.post("/{session_id}/cancel", summary="Cancel the session.", response_model=SessionResponse)
def cancel_session(athlete_id: int, session_id: int, service: SessionService = Depends(get_service)):
    return service.cancel_session(athlete_id, session_id)


@router.post("/{session_id}/resolve", summary="Resolve an overdue session.", response_model=SessionResponse)
def resolve_overdue(athlete_id: int, session_id: int, data: OverdueResolution,
                    service: SessionService = Depends(get_service), ):
    return service.resolve_overdue(athlete_id, session_id, data)
