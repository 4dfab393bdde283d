"""
Maintenance run bookkeeping.

Each sweep writes one row.  A ``running`` row younger than the lease
duration blocks a second sweep from starting.
"""

import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

RUN_RUNNING = "running"
RUN_SUCCEEDED = "succeeded"
RUN_FAILED = "failed"


class MaintenanceRun(SQLModel, table=True):
    """Audit row and single-flight lease for the daily sweep."""

    __tablename__ = "maintenance_runs"

    id: Optional[int] = Field(default=None, primary_key=True)
    started_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, index=True)
    finished_at: Optional[datetime.datetime] = Field(default=None)
    status: str = Field(default=RUN_RUNNING, max_length=20, index=True)

    overdue_marked: int = Field(default=0)
    sessions_created: int = Field(default=0)
    sessions_pruned: int = Field(default=0)
    error: Optional[str] = Field(default=None, max_length=2000)
