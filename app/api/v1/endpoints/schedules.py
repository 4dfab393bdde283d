"""
Weekly schedule endpoints.

Templates are created and deleted, never edited.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.api.dependencies import get_settings
from app.core.config import Settings
from app.db.session import get_db
from app.schemas.schedule import ScheduleCreatedResponse, ScheduleTemplateCreate, ScheduleTemplateResponse
from app.services.schedule_service import ScheduleService

router = APIRouter()


@router.post("", summary="Add a weekly slot and materialize its upcoming sessions.",
             response_model=ScheduleCreatedResponse, status_code=status.HTTP_201_CREATED, )
def create_template(athlete_id: int, data: ScheduleTemplateCreate, db: Session = Depends(get_db),
                    config: Settings = Depends(get_settings), ):
    return ScheduleService(db, config).create(athlete_id, data)


@router.get("", summary="List the weekly schedule.", response_model=list[ScheduleTemplateResponse])
def list_templates(athlete_id: int, db: Session = Depends(get_db), config: Settings = Depends(get_settings)):
    return ScheduleService(db, config).list_templates(athlete_id)


@router.delete("/{template_id}", summary="Remove a weekly slot.", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(athlete_id: int, template_id: int, db: Session = Depends(get_db),
                    config: Settings = Depends(get_settings), ):
    ScheduleService(db, config).delete(athlete_id, template_id)
