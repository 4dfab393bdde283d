"""
Athlete profile model.

Holds the settings the session engine needs per athlete: the IANA
timezone used for all wall-clock arithmetic and the per-user labels for
the 1-5 rating scales.
"""

import datetime
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

DEFAULT_RATING_LABELS: list[str] = ["Very low", "Low", "Okay", "Good", "Excellent"]


class Athlete(SQLModel, table=True):
    """An athlete owning schedules and sessions."""

    __tablename__ = "athletes"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255, nullable=False)
    first_name: str = Field(nullable=False, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    # IANA zone name, e.g. "Europe/Rome"
    timezone: str = Field(default="UTC", nullable=False, max_length=64)

    # Exactly five labels, one per rating value (validated at the schema layer)
    rating_labels: list = Field(default_factory=lambda: list(DEFAULT_RATING_LABELS),
                                sa_column=Column(JSON, nullable=False), )

    # Timestamps
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)
