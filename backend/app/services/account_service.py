"""Account Service — provisioning, refresh, and the skill-list writes that feed the upgrade policy.

Invariants:
    - One account per email (compared lower-cased and trimmed)
    - New accounts: beginner, initial beginner credits, expiry = created_at + trial days
    - Upgrade policy evaluated on provisioning/login, on every refresh, and after
      any proof-link mutation
    - User writes only ever grant allowed_to_teach (non-empty proof links),
      never revoke it; balances are never touched here (services/account_ledger.py owns them)

Design Decisions:
    - skills_have / skills_want replaced as whole lists: JSON columns do not
      track in-place mutation
    - Flush before apply_upgrade_policy: its populate_existing re-read must see
      the new proof links
"""

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import Role, SkillLevel
from app.core.economy_rules import EconomyRules
from app.core.errors import (
    DuplicateSkillError, ErrorContext, ResourceNotFoundError, ValidationFailedError,
)
from app.core.upgrade_policy import beginner_expiry_from
from app.models.account import Account
from app.services.account_ledger import AccountLedger

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _find_skill(skills: list, name: str) -> int | None:
    wanted = name.strip().lower()
    for index, entry in enumerate(skills):
        if entry.get("name", "").lower() == wanted:
            return index
    return None


def _clean_links(proof_links: list[str]) -> list[str]:
    return [link.strip() for link in proof_links if link and link.strip()]


class AccountService:
    """Account lifecycle outside the session state machine."""

    def __init__(
        self,
        db: AsyncSession,
        rules: EconomyRules,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.db = db
        self.rules = rules
        self.clock = clock
        self.ledger = AccountLedger(db)

    async def _refreshed(self, account_id: UUID) -> Account:
        """Run the upgrade policy, commit, and return the fresh row."""
        await self.ledger.apply_upgrade_policy(account_id, self.clock(), self.rules)
        await self.db.commit()
        return await self.ledger.get(account_id)

    async def provision(
        self, email: str, name: str = "", external_id: str | None = None,
    ) -> tuple[Account, bool]:
        """Find-or-create by email (login path). Returns (account, created)."""
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationFailedError("email is required", "email")

        result = await self.db.execute(
            select(Account).where(Account.email == normalized),
        )
        account = result.scalar_one_or_none()
        created = account is None
        if created:
            now = self.clock()
            account = Account(
                email=normalized,
                name=name.strip(),
                external_id=external_id,
                role=Role.BEGINNER.value,
                coins=0,
                locked_coins=0,
                beginner_credits=self.rules.initial_beginner_credits,
                reputation=0,
                sessions_taught=0,
                sessions_learned=0,
                skills_have=[],
                skills_want=[],
                created_at=now,
                beginner_expiry=beginner_expiry_from(now, self.rules),
            )
            self.db.add(account)
            await self.db.flush()
            logger.info(
                f"Provisioned account {account.id}",
                extra={"account_id": str(account.id)},
            )
        return await self._refreshed(account.id), created

    async def refresh(self, account_id: UUID) -> Account:
        """Account read used on every session refresh; beginner expiry is checked here."""
        await self.ledger.get(account_id)
        return await self._refreshed(account_id)

    async def add_skill_have(
        self,
        account_id: UUID,
        name: str,
        level: SkillLevel,
        proof_links: list[str] | None = None,
    ) -> Account:
        account = await self.ledger.get(account_id)
        if _find_skill(account.skills_have, name) is not None:
            raise DuplicateSkillError(
                name.strip(), "skills_have", ErrorContext(account_id=str(account_id)),
            )
        links = _clean_links(proof_links or [])
        account.skills_have = [
            *account.skills_have,
            {
                "name": name.strip(),
                "level": SkillLevel(level).value,
                "proof_links": links,
                "allowed_to_teach": bool(links),
            },
        ]
        await self.db.flush()
        return await self._refreshed(account_id)

    async def set_proof_links(
        self, account_id: UUID, skill_name: str, proof_links: list[str],
    ) -> Account:
        """Replace a skill's proof links; a non-empty list grants allowed_to_teach.

        Clearing the links never revokes the flag: once granted it is only
        changed administratively.
        """
        account = await self.ledger.get(account_id)
        index = _find_skill(account.skills_have, skill_name)
        if index is None:
            raise ResourceNotFoundError("Skill", skill_name)
        links = _clean_links(proof_links)
        skills = [dict(entry) for entry in account.skills_have]
        skills[index]["proof_links"] = links
        if links:
            skills[index]["allowed_to_teach"] = True
        account.skills_have = skills
        await self.db.flush()
        return await self._refreshed(account_id)

    async def add_skill_want(self, account_id: UUID, name: str) -> Account:
        account = await self.ledger.get(account_id)
        normalized = name.strip()
        if not normalized:
            raise ValidationFailedError("name is required", "name")
        if normalized.lower() in {w.lower() for w in account.skills_want}:
            raise DuplicateSkillError(
                normalized, "skills_want", ErrorContext(account_id=str(account_id)),
            )
        account.skills_want = [*account.skills_want, normalized]
        await self.db.commit()
        return await self.ledger.get(account_id)
