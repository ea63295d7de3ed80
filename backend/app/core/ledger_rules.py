"""Ledger Settlement Rules — pure arithmetic for who is paid what when a session resolves.

Invariants:
    - Settlement is PURE: returns a descriptor, the shell applies it atomically
    - released_from_requester == credited_amount for contributor bookings (conservation)
    - Beginner bookings never touch locked coins (nothing was escrowed)
    - Pending cancellations move no coins

Design Decisions:
    - Settlement as frozen dataclass: the shell turns it into guarded UPDATEs,
      tests assert on it without a database
"""

from dataclasses import dataclass

from app.core.domain_types import Party, SessionStatus
from app.core.economy_rules import EconomyRules
from app.core.repository_protocols import MentoringSessionLike


@dataclass(frozen=True)
class Settlement:
    """Coin movement for one resolved session."""
    beneficiary: Party | None
    credited_amount: int = 0
    released_from_requester: int = 0

    @property
    def moves_coins(self) -> bool:
        return self.credited_amount > 0 or self.released_from_requester > 0


NO_SETTLEMENT = Settlement(beneficiary=None)


def is_beginner_booking(session: MentoringSessionLike) -> bool:
    """Booked under the beginner program: contributors must stake > 0 at creation.

    Decides the completion payout only; accept-time funding follows the
    requester's role when the teacher accepts.
    """
    return session.stake_coins == 0


def settle_completion(
    session: MentoringSessionLike, rules: EconomyRules,
) -> Settlement:
    """Teacher payout when both parties confirmed."""
    if is_beginner_booking(session):
        return Settlement(
            beneficiary=Party.TEACHER,
            credited_amount=rules.beginner_session_reward,
        )
    return Settlement(
        beneficiary=Party.TEACHER,
        credited_amount=session.locked_coins,
        released_from_requester=session.locked_coins,
    )


def settle_cancellation(
    session: MentoringSessionLike, cancelled_by: Party,
) -> Settlement:
    """Escrow goes to whoever did NOT cancel: teacher keeps it, or requester gets it back."""
    if (
        SessionStatus(session.status) != SessionStatus.ACCEPTED
        or session.locked_coins <= 0
    ):
        return NO_SETTLEMENT
    other = (
        Party.TEACHER if cancelled_by == Party.REQUESTER else Party.REQUESTER
    )
    return Settlement(
        beneficiary=other,
        credited_amount=session.locked_coins,
        released_from_requester=session.locked_coins,
    )


def floored_reputation(reputation: int, penalty: int) -> int:
    return max(0, reputation - penalty)
