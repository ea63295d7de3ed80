"""Account ORM — a marketplace user and their ledger balances.

Invariants:
    - id is UUID primary key
    - email is unique and stored lower-cased, trimmed (case-insensitive identity)
    - coins, locked_coins, beginner_credits, reputation never go below 0
      (CHECK constraints back the guarded UPDATEs in services/account_ledger.py)
    - role == "contributor" implies beginner_credits == 0
    - sessions_taught / sessions_learned only ever increase

Design Decisions:
    - JSON columns for skills_have / skills_want: small per-account lists read
      whole, never queried by element (ADR: matches the document-shaped source data)
    - Balances are never assigned from Python after creation: all ledger
      writes are single UPDATE statements evaluated by the database
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Account(Base):
    """Account aggregate — identity plus coin, credit and reputation balances."""
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),
        CheckConstraint("locked_coins >= 0", name="ck_accounts_locked_non_negative"),
        CheckConstraint(
            "beginner_credits >= 0", name="ck_accounts_credits_non_negative",
        ),
        CheckConstraint("reputation >= 0", name="ck_accounts_reputation_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    external_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="beginner",
    )
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    beginner_credits: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3,
    )
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sessions_taught: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    sessions_learned: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    skills_have: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    skills_want: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    beginner_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
