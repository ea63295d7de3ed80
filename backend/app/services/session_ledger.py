"""Session Ledger Service — runs each session transition and its ledger effects as one unit of work.

Invariants:
    - Every transition: fresh read -> pure check (core/session_machine.py) ->
      compare-and-set UPDATE on the session -> guarded ledger UPDATEs -> commit
    - The compare-and-set re-asserts the expected status and per-party flags;
      zero matched rows means a concurrent writer won: rollback, re-check, raise
    - Any failure after the first write rolls back the whole transition —
      no counter without its coin transfer, no status without its escrow
    - Completion side effects fire exactly once (guarded by the status CAS)
    - Upgrade policy evaluated for the requester only, after completion
    - Operations are rejected, never retried

Design Decisions:
    - Relational transaction instead of a saga: the store gives multi-row
      atomicity, so no recovery pass is needed (ADR: option (a) of the design notes)
    - Session written before ledger rows: the CAS serializes competing writers
      before any balance is touched
    - Clock injectable for upgrade-policy expiry tests
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import SessionStatus
from app.core.economy_rules import EconomyRules
from app.core.errors import ErrorContext, InvalidStateError, ResourceNotFoundError
from app.core.ledger_rules import (
    Settlement, settle_cancellation, settle_completion,
)
from app.core.session_machine import (
    CONFIRMATION_FIELDS, RATING_FIELDS,
    account_id_of, check_accept, check_cancel, check_confirm, check_escrow,
    check_rate, check_reject, other_party, require_party, resolve_stake,
    validate_booking_fields,
)
from app.models.mentoring_session import MentoringSession
from app.services.account_ledger import AccountLedger

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionLedgerService:
    """Session lifecycle operations for one request-scoped DB session."""

    def __init__(
        self,
        db: AsyncSession,
        rules: EconomyRules,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.rules = rules
        self.clock = clock
        self.ledger = AccountLedger(db)

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncGenerator[None, None]:
        """Commit on success, roll back everything on any exception."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _get_session(self, session_id: UUID) -> MentoringSession:
        result = await self.db.execute(
            select(MentoringSession)
            .where(MentoringSession.id == session_id)
            .execution_options(populate_existing=True),
        )
        session = result.scalar_one_or_none()
        if not session:
            raise ResourceNotFoundError("Session", str(session_id))
        return session

    async def _compare_and_set(
        self,
        session: MentoringSession,
        expected: SessionStatus,
        guards: list,
        recheck: Callable[[MentoringSession], object],
        **values,
    ) -> None:
        """Write `values` only if the row still matches what the pure check saw.

        On a lost race the fresh row is re-checked so the caller gets the
        specific error (already accepted, already confirmed, ...).
        """
        result = await self.db.execute(
            update(MentoringSession)
            .where(
                MentoringSession.id == session.id,
                MentoringSession.status == expected.value,
                *guards,
            )
            .values(**values)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 1:
            return
        fresh = await self._get_session(session.id)
        logger.warning(
            f"Concurrent write on session {session.id}: "
            f"expected {expected.value}, found {fresh.status}",
            extra={"session_id": str(session.id)},
        )
        recheck(fresh)
        raise InvalidStateError(
            "Session was modified concurrently; reload and try again",
            fresh.status,
            context=ErrorContext(session_id=str(session.id)),
        )

    async def _apply_settlement(
        self, session: MentoringSession, settlement: Settlement,
    ) -> None:
        if settlement.released_from_requester:
            await self.ledger.release(
                session.requester_id, settlement.released_from_requester,
            )
        if settlement.beneficiary and settlement.credited_amount:
            await self.ledger.credit(
                account_id_of(session, settlement.beneficiary),
                settlement.credited_amount,
            )

    async def _finish(self, session: MentoringSession) -> MentoringSession:
        await self.db.refresh(session)
        return session

    def _log_transition(
        self, session: MentoringSession, transition: str, caller_id: UUID,
    ) -> None:
        logger.info(
            f"Session {session.id}: {transition} by {caller_id}",
            extra={
                "session_id": str(session.id),
                "account_id": str(caller_id),
                "transition": transition,
            },
        )

    # ─── create / read ───────────────────────────────────────────

    async def create(
        self,
        requester_id: UUID,
        teacher_id: UUID,
        skill: str,
        topic: str,
        time_slot: str,
        stake_coins: int = 0,
    ) -> MentoringSession:
        """Book a pending session. Stake is checked, never escrowed, here."""
        validate_booking_fields(requester_id, teacher_id, skill, topic, time_slot)
        async with self._unit_of_work():
            teacher = await self.ledger.get(teacher_id, "Teacher")
            requester = await self.ledger.get(requester_id, "Requester")
            stake = resolve_stake(requester, teacher, skill, stake_coins)
            session = MentoringSession(
                requester_id=requester_id,
                teacher_id=teacher_id,
                skill=skill.strip(),
                topic=topic.strip(),
                time_slot=time_slot.strip(),
                status=SessionStatus.PENDING.value,
                stake_coins=stake,
                locked_coins=0,
            )
            self.db.add(session)
            await self.db.flush()
        self._log_transition(session, "create", requester_id)
        return await self._finish(session)

    async def get(self, session_id: UUID, caller_id: UUID) -> MentoringSession:
        """Single session, visible to its two parties only."""
        session = await self._get_session(session_id)
        require_party(session, caller_id)
        return session

    async def list_for(self, account_id: UUID) -> list[MentoringSession]:
        """Sessions where the account is requester or teacher, newest first."""
        result = await self.db.execute(
            select(MentoringSession)
            .where(or_(
                MentoringSession.requester_id == account_id,
                MentoringSession.teacher_id == account_id,
            ))
            .order_by(MentoringSession.created_at.desc()),
        )
        return list(result.scalars().all())

    # ─── teacher decisions ───────────────────────────────────────

    async def accept(self, session_id: UUID, caller_id: UUID) -> MentoringSession:
        """Teacher accepts: consume a beginner credit or escrow the stake."""
        async with self._unit_of_work():
            session = await self._get_session(session_id)
            check_accept(session, caller_id)
            requester = await self.ledger.get(session.requester_id, "Requester")
            uses_credit = check_escrow(session, requester)
            await self._compare_and_set(
                session, SessionStatus.PENDING, [],
                lambda fresh: check_accept(fresh, caller_id),
                status=SessionStatus.ACCEPTED.value,
                locked_coins=0 if uses_credit else session.stake_coins,
            )
            if uses_credit:
                await self.ledger.consume_beginner_credit(session.requester_id)
            elif session.stake_coins:
                await self.ledger.lock(session.requester_id, session.stake_coins)
        self._log_transition(session, "accept", caller_id)
        return await self._finish(session)

    async def reject(self, session_id: UUID, caller_id: UUID) -> MentoringSession:
        async with self._unit_of_work():
            session = await self._get_session(session_id)
            check_reject(session, caller_id)
            await self._compare_and_set(
                session, SessionStatus.PENDING, [],
                lambda fresh: check_reject(fresh, caller_id),
                status=SessionStatus.REJECTED.value,
            )
        self._log_transition(session, "reject", caller_id)
        return await self._finish(session)

    # ─── either party ────────────────────────────────────────────

    async def confirm(self, session_id: UUID, caller_id: UUID) -> MentoringSession:
        """Mark the caller's side done; the second confirmation completes and settles."""
        async with self._unit_of_work():
            session = await self._get_session(session_id)
            step = check_confirm(session, caller_id)
            own = getattr(MentoringSession, CONFIRMATION_FIELDS[step.party])
            other = getattr(
                MentoringSession, CONFIRMATION_FIELDS[other_party(step.party)],
            )
            values: dict = {CONFIRMATION_FIELDS[step.party]: True}
            if step.completes_phase:
                values["status"] = SessionStatus.COMPLETED.value
            await self._compare_and_set(
                session, SessionStatus.ACCEPTED,
                [own.is_(False), other.is_(step.completes_phase)],
                lambda fresh: check_confirm(fresh, caller_id),
                **values,
            )
            if step.completes_phase:
                await self._complete(session)
        self._log_transition(
            session, "complete" if step.completes_phase else "confirm", caller_id,
        )
        return await self._finish(session)

    async def _complete(self, session: MentoringSession) -> None:
        await self._apply_settlement(
            session, settle_completion(session, self.rules),
        )
        await self.ledger.increment_taught(session.teacher_id)
        await self.ledger.increment_learned(session.requester_id)
        await self.ledger.apply_upgrade_policy(
            session.requester_id, self.clock(), self.rules,
        )

    async def cancel(self, session_id: UUID, caller_id: UUID) -> MentoringSession:
        """Either party cancels; escrow goes to the other side, canceller loses reputation."""
        async with self._unit_of_work():
            session = await self._get_session(session_id)
            party = check_cancel(session, caller_id)
            settlement = settle_cancellation(session, party)
            await self._compare_and_set(
                session, SessionStatus(session.status),
                [MentoringSession.locked_coins == session.locked_coins],
                lambda fresh: check_cancel(fresh, caller_id),
                status=SessionStatus.CANCELLED.value,
                cancelled_by=caller_id,
            )
            await self._apply_settlement(session, settlement)
            await self.ledger.penalize_reputation(
                caller_id, self.rules.cancel_reputation_penalty,
            )
        self._log_transition(session, f"cancel ({party.value})", caller_id)
        return await self._finish(session)

    async def rate(
        self, session_id: UUID, caller_id: UUID, rating: int,
    ) -> MentoringSession:
        """Record the caller's rating; the second rating closes the session."""
        async with self._unit_of_work():
            session = await self._get_session(session_id)
            step = check_rate(session, caller_id, rating)
            own = getattr(MentoringSession, RATING_FIELDS[step.party])
            other = getattr(
                MentoringSession, RATING_FIELDS[other_party(step.party)],
            )
            values: dict = {RATING_FIELDS[step.party]: rating}
            if step.completes_phase:
                values["status"] = SessionStatus.CLOSED.value
            await self._compare_and_set(
                session, SessionStatus.COMPLETED,
                [
                    own.is_(None),
                    other.is_not(None) if step.completes_phase else other.is_(None),
                ],
                lambda fresh: check_rate(fresh, caller_id, rating),
                **values,
            )
        self._log_transition(
            session, "close" if step.completes_phase else "rate", caller_id,
        )
        return await self._finish(session)
