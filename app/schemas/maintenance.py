"""
Maintenance trigger response.

Field names are camelCase on the wire to match the cron consumer.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SweepResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    overdue_sessions_marked: int = Field(..., alias="overdueSessionsMarked")
    sessions_created: int = Field(..., alias="sessionsCreated")
    sessions_pruned: int = Field(..., alias="sessionsPruned")
    timestamp: datetime.datetime


class MaintenanceRunResponse(BaseModel):
    """Audit row of one sweep run."""

    id: int
    started_at: datetime.datetime
    finished_at: Optional[datetime.datetime]
    status: str
    overdue_marked: int
    sessions_created: int
    sessions_pruned: int
    error: Optional[str]

    class Config:
        from_attributes = True
