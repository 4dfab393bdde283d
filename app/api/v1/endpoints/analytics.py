"""
Analytics endpoints — streaks, consistency, goal completion.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.api.dependencies import get_athlete
from app.db.session import get_db
from app.engine.analytics import compute_progress
from app.engine.timeutils import local_today, utcnow
from app.models.athlete import Athlete
from app.schemas.analytics import ProgressResponse

router = APIRouter()


@router.get(
    "/progress",
    summary="Get streaks, rolling consistency and goal completion.",
    response_model=ProgressResponse,
)
def get_progress(
    as_of: Optional[datetime.date] = Query(
        None, description="Reference date (defaults to the athlete's today)"
    ),
    db: Session = Depends(get_db),
    athlete: Athlete = Depends(get_athlete),
):
    ref_date = as_of or local_today(utcnow(), athlete.timezone)
    return compute_progress(db, athlete.id, ref_date)
