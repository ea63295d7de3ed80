"""MentoringSession ORM — one requested, ongoing, or finished engagement between two accounts.

Invariants:
    - id is UUID primary key
    - requester_id != teacher_id
    - status transitions: pending -> accepted -> completed -> closed,
      pending -> rejected, pending | accepted -> cancelled (see core/session_machine.py)
    - locked_coins is 0 until the teacher accepts a contributor booking
    - cancelled_by set only when status == "cancelled"
    - created_at immutable; no hard delete path

Design Decisions:
    - Named MentoringSession to keep it apart from the SQLAlchemy AsyncSession
    - Per-party flags stored as columns; core addresses them through Party-keyed maps
    - Index on (requester_id, created_at) and (teacher_id, created_at) for list-sessions
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class MentoringSession(Base):
    """Session record — owns its status and per-party confirmation/rating state."""
    __tablename__ = "mentoring_sessions"
    __table_args__ = (
        CheckConstraint(
            "requester_id <> teacher_id", name="ck_sessions_distinct_parties",
        ),
        CheckConstraint("stake_coins >= 0", name="ck_sessions_stake_non_negative"),
        CheckConstraint("locked_coins >= 0", name="ck_sessions_locked_non_negative"),
        Index("ix_sessions_requester_created", "requester_id", "created_at"),
        Index("ix_sessions_teacher_created", "teacher_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False,
    )
    teacher_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False,
    )
    skill: Mapped[str] = mapped_column(String(200), nullable=False)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    requester_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    teacher_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    rating_given_by_requester: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    rating_given_by_teacher: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    stake_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cancelled_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
