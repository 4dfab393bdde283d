"""
Athlete API schemas.

Pydantic models for athlete profile request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.engine.timeutils import is_valid_timezone

RATING_LABEL_COUNT = 5


def _check_timezone(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_timezone(value):
        raise ValueError(f"Unknown IANA timezone: '{value}'")
    return value


def _check_labels(value: Optional[list[str]]) -> Optional[list[str]]:
    if value is None:
        return value
    if len(value) != RATING_LABEL_COUNT:
        raise ValueError(f"Exactly {RATING_LABEL_COUNT} rating labels are required, got {len(value)}")
    if any(not label.strip() for label in value):
        raise ValueError("Rating labels must not be blank")
    return [label.strip() for label in value]


# Shared properties
class AthleteBase(BaseModel):
    """Base athlete schema with common fields."""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


# Request schemas
class AthleteCreate(AthleteBase):
    """Schema for athlete creation."""
    timezone: str = Field("UTC", description="IANA timezone, e.g. 'Europe/Rome'")
    rating_labels: Optional[list[str]] = Field(None, description="Five labels for rating values 1-5")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _check_timezone(v)

    @field_validator("rating_labels")
    @classmethod
    def validate_rating_labels(cls, v):
        return _check_labels(v)


class AthleteUpdate(BaseModel):
    """Schema for updating the athlete's settings."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = None
    rating_labels: Optional[list[str]] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _check_timezone(v)

    @field_validator("rating_labels")
    @classmethod
    def validate_rating_labels(cls, v):
        return _check_labels(v)


# Response schemas
class AthleteResponse(AthleteBase):
    """Schema for athlete data in API responses."""
    id: int
    timezone: str
    rating_labels: list[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # Allows creation from SQLModel objects
