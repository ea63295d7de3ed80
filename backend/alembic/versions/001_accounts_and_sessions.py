"""Accounts and mentoring sessions.

Revision ID: 001_accounts_sessions
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_accounts_sessions"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("external_id", sa.String(255), nullable=True, unique=True),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="beginner"),
        sa.Column("coins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("locked_coins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("beginner_credits", sa.Integer, nullable=False, server_default="3"),
        sa.Column("reputation", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sessions_taught", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sessions_learned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("skills_have", sa.JSON, nullable=False),
        sa.Column("skills_want", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("beginner_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),
        sa.CheckConstraint("locked_coins >= 0", name="ck_accounts_locked_non_negative"),
        sa.CheckConstraint("beginner_credits >= 0", name="ck_accounts_credits_non_negative"),
        sa.CheckConstraint("reputation >= 0", name="ck_accounts_reputation_non_negative"),
    )

    op.create_table(
        "mentoring_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("requester_id", UUID(as_uuid=True), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("teacher_id", UUID(as_uuid=True), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("skill", sa.String(200), nullable=False),
        sa.Column("topic", sa.Text, nullable=False),
        sa.Column("time_slot", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("requester_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("teacher_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("rating_given_by_requester", sa.Integer, nullable=True),
        sa.Column("rating_given_by_teacher", sa.Integer, nullable=True),
        sa.Column("stake_coins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("locked_coins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cancelled_by", UUID(as_uuid=True), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("requester_id <> teacher_id", name="ck_sessions_distinct_parties"),
        sa.CheckConstraint("stake_coins >= 0", name="ck_sessions_stake_non_negative"),
        sa.CheckConstraint("locked_coins >= 0", name="ck_sessions_locked_non_negative"),
    )
    op.create_index(
        "ix_sessions_requester_created", "mentoring_sessions", ["requester_id", "created_at"],
    )
    op.create_index(
        "ix_sessions_teacher_created", "mentoring_sessions", ["teacher_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_sessions_teacher_created", table_name="mentoring_sessions")
    op.drop_index("ix_sessions_requester_created", table_name="mentoring_sessions")
    op.drop_table("mentoring_sessions")
    op.drop_table("accounts")
