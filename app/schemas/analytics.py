"""
Progress analytics schemas.

Percentages are integers in ``[0, 100]`` rounded half-up; an empty
window yields 0 rather than an error.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProgressResponse(BaseModel):
    """Longitudinal analytics for one athlete."""

    as_of: datetime.date
    current_streak_days: int = Field(..., description="Consecutive days with a completed session, "
                                                      "anchored to today or yesterday")
    longest_streak_days: int
    consistency_percent: int = Field(..., ge=0, le=100, description="Completed / scheduled over the window")
    consistency_window_days: int
    goal_completion_percent: int = Field(..., ge=0, le=100,
                                         description="Achieved goals / all goals of completed sessions")
    goal_window_days: int

    total_sessions: int
    completed_sessions: int
    absent_sessions: int
    completion_rate_percent: int = Field(..., ge=0, le=100, description="Completed / (completed + absent)")
    total_stars: int
    average_rating: Optional[float] = Field(None, description="Mean reflection rating, one decimal")
