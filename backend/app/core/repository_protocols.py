"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Core reads accounts and sessions through these structural types only
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - ORM models satisfy AccountLike / MentoringSessionLike as-is, and tests can
      pass plain dataclasses without a database
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.core.domain_types import AccountId


class AccountLike(Protocol):
    """Structural contract for accounts read by the state machine and upgrade policy."""
    id: UUID
    role: str
    coins: int
    locked_coins: int
    beginner_credits: int
    reputation: int
    sessions_taught: int
    sessions_learned: int
    skills_have: list
    beginner_expiry: datetime | None


class MentoringSessionLike(Protocol):
    """Structural contract for session records read by the state machine."""
    id: UUID
    requester_id: UUID
    teacher_id: UUID
    skill: str
    status: str
    requester_confirmed: bool
    teacher_confirmed: bool
    rating_given_by_requester: int | None
    rating_given_by_teacher: int | None
    stake_coins: int
    locked_coins: int


class IdentityProvider(Protocol):
    """Contract for the external identity collaborator — implemented by shell."""
    def issue_token(self, account_id: AccountId) -> str: ...
    def resolve(self, token: str) -> AccountId: ...
