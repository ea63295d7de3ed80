"""Session State Machine — pure transition rules for mentoring sessions.

Invariants:
    - pending -> accepted | rejected | cancelled
    - accepted -> accepted (one party confirmed) | completed (both) | cancelled
    - completed -> completed (one party rated) | closed (both)
    - rejected, cancelled, closed are terminal: every check raises InvalidStateError
    - accept/reject are teacher-only; confirm/cancel/rate accept either party
    - Each party confirms at most once and rates at most once
    - check_* functions are PURE: they raise or return a plan, never mutate

Design Decisions:
    - Per-party flags addressed through Party-keyed field maps instead of
      parallel if/else on requester/teacher (ADR: adding a role is one map entry)
    - The shell re-asserts the same preconditions in its compare-and-set UPDATE,
      so a check passing here is necessary but not sufficient
"""

from dataclasses import dataclass
from uuid import UUID

from app.core.domain_types import (
    CANCELLABLE_STATUSES, MAX_RATING, MIN_RATING, TERMINAL_STATUSES,
    Party, Role, SessionStatus,
)
from app.core.errors import (
    AlreadyConfirmedError, AlreadyRatedError, ErrorContext, ForbiddenError,
    InsufficientFundsError, InvalidRatingError, InvalidStateError,
    ValidationFailedError,
)
from app.core.repository_protocols import AccountLike, MentoringSessionLike


CONFIRMATION_FIELDS: dict[Party, str] = {
    Party.REQUESTER: "requester_confirmed",
    Party.TEACHER: "teacher_confirmed",
}

RATING_FIELDS: dict[Party, str] = {
    Party.REQUESTER: "rating_given_by_requester",
    Party.TEACHER: "rating_given_by_teacher",
}


@dataclass(frozen=True)
class PartyStep:
    """Outcome of a per-party confirm/rate: who acted and whether it finishes the phase."""
    party: Party
    completes_phase: bool


def _ctx(session: MentoringSessionLike, caller_id: UUID | None = None) -> ErrorContext:
    return ErrorContext(
        session_id=str(session.id),
        account_id=str(caller_id) if caller_id else None,
    )


def party_of(session: MentoringSessionLike, caller_id: UUID) -> Party | None:
    if session.requester_id == caller_id:
        return Party.REQUESTER
    if session.teacher_id == caller_id:
        return Party.TEACHER
    return None


def require_party(session: MentoringSessionLike, caller_id: UUID) -> Party:
    party = party_of(session, caller_id)
    if party is None:
        raise ForbiddenError("Access denied", _ctx(session, caller_id))
    return party


def other_party(party: Party) -> Party:
    return Party.TEACHER if party == Party.REQUESTER else Party.REQUESTER


def account_id_of(session: MentoringSessionLike, party: Party) -> UUID:
    return session.requester_id if party == Party.REQUESTER else session.teacher_id


def has_confirmed(session: MentoringSessionLike, party: Party) -> bool:
    return bool(getattr(session, CONFIRMATION_FIELDS[party]))


def rating_of(session: MentoringSessionLike, party: Party) -> int | None:
    return getattr(session, RATING_FIELDS[party])


def _require_status(
    session: MentoringSessionLike,
    allowed: frozenset[SessionStatus] | set[SessionStatus],
    action: str,
    caller_id: UUID | None = None,
) -> SessionStatus:
    status = SessionStatus(session.status)
    if status in allowed:
        return status
    if status in TERMINAL_STATUSES:
        message = f'Cannot {action} a session with status "{status.value}"'
    else:
        message = f'Session is already "{status.value}"'
    raise InvalidStateError(message, status.value, context=_ctx(session, caller_id))


# ─── Creation ────────────────────────────────────────────────────

def validate_booking_fields(
    requester_id: UUID, teacher_id: UUID, skill: str, topic: str, time_slot: str,
) -> None:
    """Reject malformed bookings before any state is read."""
    for field_name, value in (
        ("skill", skill), ("topic", topic), ("time_slot", time_slot),
    ):
        if not value or not value.strip():
            raise ValidationFailedError(
                "teacher_id, skill, topic, and time_slot are required",
                field_name,
            )
    if requester_id == teacher_id:
        raise ValidationFailedError(
            "You cannot book a session with yourself", "teacher_id",
        )


def teaches_skill(teacher: AccountLike, skill: str) -> bool:
    wanted = skill.strip().lower()
    return any(
        entry.get("name", "").lower() == wanted
        for entry in teacher.skills_have or []
    )


def resolve_stake(
    requester: AccountLike, teacher: AccountLike, skill: str, stake_coins: int,
) -> int:
    """Check booking preconditions and return the stake to store.

    Beginners book with credits, so any offered stake is stored as 0.
    Contributors must stake > 0 and hold that many coins right now; the check
    is advisory, nothing is escrowed until the teacher accepts.
    """
    if not teaches_skill(teacher, skill):
        raise ForbiddenError(
            f'Teacher does not have skill "{skill}"',
            ErrorContext(account_id=str(teacher.id)),
        )
    if Role(requester.role) == Role.BEGINNER:
        return 0
    if not stake_coins or stake_coins <= 0:
        raise ValidationFailedError(
            "Contributors must provide stake_coins > 0", "stake_coins",
        )
    if requester.coins < stake_coins:
        raise InsufficientFundsError(
            f"Not enough coins. You have {requester.coins}, need {stake_coins}",
            ErrorContext(account_id=str(requester.id)),
        )
    return stake_coins


# ─── Teacher decisions ───────────────────────────────────────────

def _require_teacher(
    session: MentoringSessionLike, caller_id: UUID, action: str,
) -> None:
    if session.teacher_id != caller_id:
        raise ForbiddenError(
            f"Only the teacher can {action} this session",
            _ctx(session, caller_id),
        )


def check_accept(session: MentoringSessionLike, caller_id: UUID) -> None:
    _require_teacher(session, caller_id, "accept")
    _require_status(session, {SessionStatus.PENDING}, "accept", caller_id)


def check_reject(session: MentoringSessionLike, caller_id: UUID) -> None:
    _require_teacher(session, caller_id, "reject")
    _require_status(session, {SessionStatus.PENDING}, "reject", caller_id)


def check_escrow(
    session: MentoringSessionLike, requester: AccountLike,
) -> bool:
    """Authoritative funding check at accept time, against the current balance.

    Branches on the requester's role now, not at booking: a beginner promoted
    after booking is funded as a contributor (stake 0, nothing locked).
    Returns True when the booking is paid with a beginner credit.
    """
    if Role(requester.role) == Role.BEGINNER:
        if requester.beginner_credits <= 0:
            raise InsufficientFundsError(
                "Requester has no beginner credits remaining",
                _ctx(session, requester.id),
            )
        return True
    if requester.coins < session.stake_coins:
        raise InsufficientFundsError(
            f"Requester no longer has enough coins "
            f"(has {requester.coins}, needs {session.stake_coins})",
            _ctx(session, requester.id),
        )
    return False


# ─── Either-party steps ──────────────────────────────────────────

def check_confirm(session: MentoringSessionLike, caller_id: UUID) -> PartyStep:
    party = require_party(session, caller_id)
    status = _require_status(session, {SessionStatus.ACCEPTED}, "confirm", caller_id)
    if has_confirmed(session, party):
        raise AlreadyConfirmedError(status.value, _ctx(session, caller_id))
    return PartyStep(
        party=party,
        completes_phase=has_confirmed(session, other_party(party)),
    )


def check_cancel(session: MentoringSessionLike, caller_id: UUID) -> Party:
    party = require_party(session, caller_id)
    _require_status(session, CANCELLABLE_STATUSES, "cancel", caller_id)
    return party


def validate_rating(rating: object) -> int:
    if (
        isinstance(rating, bool)
        or not isinstance(rating, int)
        or not MIN_RATING <= rating <= MAX_RATING
    ):
        raise InvalidRatingError(rating)
    return rating


def check_rate(
    session: MentoringSessionLike, caller_id: UUID, rating: object,
) -> PartyStep:
    validate_rating(rating)
    party = require_party(session, caller_id)
    status = _require_status(session, {SessionStatus.COMPLETED}, "rate", caller_id)
    if rating_of(session, party) is not None:
        raise AlreadyRatedError(status.value, _ctx(session, caller_id))
    return PartyStep(
        party=party,
        completes_phase=rating_of(session, other_party(party)) is not None,
    )
