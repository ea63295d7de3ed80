"""Upgrade Policy — decides one-way promotion from beginner to contributor.

Invariants:
    - Only beginners are ever promoted; contributors evaluate to False (idempotent)
    - Any ONE trigger suffices: trial expired, enough sessions learned, or proof of work
    - Promotion forces beginner_credits to 0 (applied by the shell in the same write)

Design Decisions:
    - Expiry evaluated lazily against an injected `now` — no background job
    - Naive datetimes (SQLite round-trip) are treated as UTC
"""

from datetime import datetime, timedelta, timezone

from app.core.domain_types import Role
from app.core.economy_rules import EconomyRules
from app.core.repository_protocols import AccountLike


def beginner_expiry_from(created_at: datetime, rules: EconomyRules) -> datetime:
    return created_at + timedelta(days=rules.beginner_trial_days)


def has_proof_of_work(skills_have: list) -> bool:
    return any(skill.get("proof_links") for skill in skills_have or [])


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def upgrade_reason(
    account: AccountLike, now: datetime, rules: EconomyRules,
) -> str | None:
    """Return which trigger fires, or None when the account stays as-is."""
    if Role(account.role) != Role.BEGINNER:
        return None
    if account.beginner_expiry and _as_utc(now) > _as_utc(account.beginner_expiry):
        return "trial_expired"
    if account.sessions_learned >= rules.upgrade_sessions_learned:
        return "sessions_learned"
    if has_proof_of_work(account.skills_have):
        return "proof_of_work"
    return None


def should_upgrade(
    account: AccountLike, now: datetime, rules: EconomyRules,
) -> bool:
    return upgrade_reason(account, now, rules) is not None
