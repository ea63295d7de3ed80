"""Session Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - SessionCreate: skill/topic/time_slot stripped, non-empty; stake_coins >= 0
    - RatingInput.rating passes through uncoerced: type and range are enforced by
      core/session_machine.validate_rating so callers get INVALID_RATING
    - SessionResponse mirrors the persisted fields exactly (no derived fields)

Design Decisions:
    - field_validator for side-effect-free transforms (strip) — keeps models pure
    - from_attributes: responses built straight from ORM rows
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionCreate(BaseModel):
    """Booking request — requester identity comes from the bearer token."""
    teacher_id: UUID
    skill: str = Field(min_length=1, max_length=200)
    topic: str = Field(min_length=1, max_length=2000)
    time_slot: str = Field(min_length=1, max_length=100)
    stake_coins: int = Field(0, ge=0)

    @field_validator("skill", "topic", "time_slot")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class RatingInput(BaseModel):
    # Raw JSON value: lax coercion would turn true into 1 and "5" into 5
    rating: Any = None


class SessionResponse(BaseModel):
    """Session response — public-facing session data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: UUID
    teacher_id: UUID
    skill: str
    topic: str
    time_slot: str
    status: str
    requester_confirmed: bool
    teacher_confirmed: bool
    rating_given_by_requester: int | None = None
    rating_given_by_teacher: int | None = None
    stake_coins: int
    locked_coins: int
    cancelled_by: UUID | None = None
    created_at: datetime


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
