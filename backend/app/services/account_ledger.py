"""Account Ledger — atomic per-account balance operations as guarded UPDATE statements.

Invariants:
    - Every operation is ONE UPDATE evaluated by the database against the current row;
      Python never computes a new balance from a value it read earlier
    - Guarded operations (debit, lock, release, consume_beginner_credit) raise
      InsufficientFundsError when the guard matches no row, leaving the row untouched
    - Reputation floors at 0; counters only increase
    - promote() is idempotent: only a beginner row matches
    - Operations never commit — the caller's unit of work owns the transaction

Design Decisions:
    - synchronize_session=False: no RETURNING round-trip, rowcount is authoritative;
      callers reload accounts with populate_existing when they need fresh values
    - amounts validated here (ValueError): a negative amount is a programming error,
      not a user error
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import Role
from app.core.economy_rules import EconomyRules
from app.core.errors import ErrorContext, InsufficientFundsError, ResourceNotFoundError
from app.core.upgrade_policy import upgrade_reason
from app.models.account import Account

logger = logging.getLogger(__name__)


def _require_non_negative(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Ledger amount must be >= 0, got {amount}")


class AccountLedger:
    """Guarded balance mutations for accounts inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, account_id: UUID, label: str = "Account") -> Account:
        """Fresh read — overwrites any stale copy in the identity map."""
        result = await self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .execution_options(populate_existing=True),
        )
        account = result.scalar_one_or_none()
        if not account:
            raise ResourceNotFoundError(label, str(account_id))
        return account

    async def _apply(
        self,
        account_id: UUID,
        *guards,
        shortfall: str | None = None,
        **values,
    ) -> None:
        stmt = (
            update(Account)
            .where(Account.id == account_id, *guards)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 1:
            return
        if shortfall:
            raise InsufficientFundsError(
                shortfall, ErrorContext(account_id=str(account_id)),
            )
        raise ResourceNotFoundError("Account", str(account_id))

    async def debit(self, account_id: UUID, amount: int) -> None:
        _require_non_negative(amount)
        await self._apply(
            account_id, Account.coins >= amount,
            shortfall=f"Not enough coins to debit {amount}",
            coins=Account.coins - amount,
        )

    async def credit(self, account_id: UUID, amount: int) -> None:
        _require_non_negative(amount)
        await self._apply(account_id, coins=Account.coins + amount)

    async def lock(self, account_id: UUID, amount: int) -> None:
        """Move `amount` from spendable coins into locked coins."""
        _require_non_negative(amount)
        await self._apply(
            account_id, Account.coins >= amount,
            shortfall=f"Requester no longer has enough coins (needs {amount})",
            coins=Account.coins - amount,
            locked_coins=Account.locked_coins + amount,
        )

    async def release(self, account_id: UUID, amount: int) -> None:
        """Drop `amount` from locked coins; crediting the beneficiary is a separate call."""
        _require_non_negative(amount)
        await self._apply(
            account_id, Account.locked_coins >= amount,
            shortfall=f"Locked balance is smaller than {amount}",
            locked_coins=Account.locked_coins - amount,
        )

    async def consume_beginner_credit(self, account_id: UUID) -> None:
        await self._apply(
            account_id, Account.beginner_credits > 0,
            shortfall="Requester has no beginner credits remaining",
            beginner_credits=Account.beginner_credits - 1,
        )

    async def penalize_reputation(self, account_id: UUID, amount: int) -> None:
        _require_non_negative(amount)
        await self._apply(
            account_id,
            reputation=case(
                (Account.reputation > amount, Account.reputation - amount),
                else_=0,
            ),
        )

    async def increment_taught(self, account_id: UUID) -> None:
        await self._apply(
            account_id, sessions_taught=Account.sessions_taught + 1,
        )

    async def increment_learned(self, account_id: UUID) -> None:
        await self._apply(
            account_id, sessions_learned=Account.sessions_learned + 1,
        )

    async def promote(self, account_id: UUID) -> bool:
        """Beginner -> contributor with credits forced to 0. False if already promoted."""
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.role == Role.BEGINNER.value)
            .values(role=Role.CONTRIBUTOR.value, beginner_credits=0)
            .execution_options(synchronize_session=False),
        )
        return result.rowcount == 1

    async def apply_upgrade_policy(
        self, account_id: UUID, now: datetime, rules: EconomyRules,
    ) -> bool:
        """Re-read the account and promote it if any upgrade trigger fires."""
        account = await self.get(account_id)
        reason = upgrade_reason(account, now, rules)
        if reason is None:
            return False
        promoted = await self.promote(account_id)
        if promoted:
            logger.info(
                f"Account {account_id} promoted to contributor ({reason})",
                extra={"account_id": str(account_id)},
            )
        return promoted
