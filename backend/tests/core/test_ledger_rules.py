"""Ledger Settlement Rules — tests for who gets paid on completion and cancellation.

Tests cover:
    - Beginner completion pays the fixed reward and releases nothing
    - Contributor completion conserves coins (release == credit == locked)
    - Cancellation pays the non-cancelling party; pending cancellation moves nothing
    - Reputation floor
"""

from uuid import uuid4

import pytest

from app.core.domain_types import Party
from app.core.economy_rules import EconomyRules
from app.core.ledger_rules import (
    NO_SETTLEMENT, floored_reputation, is_beginner_booking,
    settle_cancellation, settle_completion,
)

from tests.core.fakes import FakeSession


def _session(**kwargs) -> FakeSession:
    return FakeSession(requester_id=uuid4(), teacher_id=uuid4(), **kwargs)


def test_beginner_booking_detected_by_zero_stake():
    assert is_beginner_booking(_session(stake_coins=0))
    assert not is_beginner_booking(_session(stake_coins=4))


def test_beginner_completion_pays_fixed_reward():
    settlement = settle_completion(
        _session(status="accepted", stake_coins=0), EconomyRules(),
    )
    assert settlement.beneficiary == Party.TEACHER
    assert settlement.credited_amount == 5
    assert settlement.released_from_requester == 0


def test_reward_comes_from_injected_rules():
    settlement = settle_completion(
        _session(status="accepted"), EconomyRules(beginner_session_reward=12),
    )
    assert settlement.credited_amount == 12


def test_contributor_completion_conserves_locked_coins():
    settlement = settle_completion(
        _session(status="accepted", stake_coins=4, locked_coins=4), EconomyRules(),
    )
    assert settlement.beneficiary == Party.TEACHER
    assert settlement.credited_amount == settlement.released_from_requester == 4


@pytest.mark.parametrize("canceller, beneficiary", [
    (Party.REQUESTER, Party.TEACHER),
    (Party.TEACHER, Party.REQUESTER),
])
def test_accepted_cancellation_pays_other_party(canceller, beneficiary):
    session = _session(status="accepted", stake_coins=6, locked_coins=6)
    settlement = settle_cancellation(session, canceller)
    assert settlement.beneficiary == beneficiary
    assert settlement.credited_amount == 6
    assert settlement.released_from_requester == 6


def test_pending_cancellation_moves_nothing():
    session = _session(status="pending", stake_coins=6)
    assert settle_cancellation(session, Party.REQUESTER) == NO_SETTLEMENT
    assert not NO_SETTLEMENT.moves_coins


def test_accepted_beginner_cancellation_moves_nothing():
    session = _session(status="accepted", stake_coins=0, locked_coins=0)
    assert not settle_cancellation(session, Party.TEACHER).moves_coins


@pytest.mark.parametrize("reputation, expected", [(20, 15), (5, 0), (3, 0), (0, 0)])
def test_reputation_floors_at_zero(reputation, expected):
    assert floored_reputation(reputation, 5) == expected
