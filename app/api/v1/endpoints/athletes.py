"""
Athlete endpoints.

Profile creation and the settings the engine depends on (timezone,
rating labels).
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.api.dependencies import get_athlete
from app.db.session import get_db
from app.models.athlete import Athlete
from app.schemas.athlete import AthleteCreate, AthleteResponse, AthleteUpdate
from app.services.athlete_service import AthleteService

router = APIRouter()


@router.post("", summary="Register an athlete.", response_model=AthleteResponse, status_code=status.HTTP_201_CREATED, )
def create_athlete(data: AthleteCreate, db: Session = Depends(get_db)):
    return AthleteService(db).create(data)


@router.get("/{athlete_id}", summary="Get an athlete profile.", response_model=AthleteResponse)
def get_athlete_profile(athlete: Athlete = Depends(get_athlete)):
    return athlete


@router.patch("/{athlete_id}", summary="Update timezone, rating labels or name.", response_model=AthleteResponse, )
def update_athlete(athlete_id: int, data: AthleteUpdate, db: Session = Depends(get_db)):
    return AthleteService(db).update(athlete_id, data)
