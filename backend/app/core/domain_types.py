"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - AccountId, MentoringSessionId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - TERMINAL_STATUSES admit no outgoing transition

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored as plain strings in the DB and serialized to JSON as-is
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

AccountId = NewType("AccountId", UUID)
MentoringSessionId = NewType("MentoringSessionId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Account role. Promotion beginner -> contributor is one-way."""
    BEGINNER = "beginner"
    CONTRIBUTOR = "contributor"


class SkillLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    MENTOR = "Mentor"


class SessionStatus(str, Enum):
    """Mentoring session lifecycle states — maps to DB `status` column."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CLOSED = "closed"


class Party(str, Enum):
    """The two sides of a mentoring session."""
    REQUESTER = "requester"
    TEACHER = "teacher"


TERMINAL_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.REJECTED,
    SessionStatus.CANCELLED,
    SessionStatus.CLOSED,
})

CANCELLABLE_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.PENDING,
    SessionStatus.ACCEPTED,
})

MIN_RATING: int = 1
MAX_RATING: int = 5
