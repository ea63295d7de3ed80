"""Session Concurrency — interleaved writers and mid-transition failures.

Invariants:
    - Two accepts racing on one pending session: exactly one escrows, the
      other sees the session already accepted
    - Two confirmations racing never strand the session: the loser is told to
      reload, the retry completes it, settlement happens once
    - A failure between the session write and the ledger writes rolls the
      whole transition back (no status without its coin movement)

Design Decisions:
    - Interleaving is forced, not timed: the competing operation runs inside
      the first one's read step, on a second connection (file-backed SQLite)
"""

import pytest

from app.core.economy_rules import EconomyRules
from app.core.errors import AlreadyConfirmedError, InvalidStateError
from app.services.account_ledger import AccountLedger
from app.services.session_ledger import SessionLedgerService

from tests.services.seed import seed_account


async def _seed(factory, clock, rules, **accounts):
    seeded = {}
    async with factory() as db:
        for key, kwargs in accounts.items():
            account = seed_account(rules, clock(), key, **kwargs)
            db.add(account)
            seeded[key] = account
        await db.commit()
    return seeded


def _interleave_after_first_read(service, competitor):
    """Run `competitor()` right after `service` reads the session the first time."""
    original = service._get_session
    ran = []

    async def read_then_compete(session_id):
        session = await original(session_id)
        if not ran:
            ran.append(True)
            await competitor()
        return session

    service._get_session = read_then_compete
    return ran


@pytest.fixture
async def race(file_session_factory, clock):
    rules = EconomyRules()
    people = await _seed(
        file_session_factory, clock, rules,
        requester={"role": "contributor", "coins": 10, "teaches": ()},
        teacher={"role": "contributor", "coins": 0, "teaches": ("Python",)},
    )
    db_a = file_session_factory()
    db_b = file_session_factory()
    service_a = SessionLedgerService(db_a, rules, clock=clock)
    service_b = SessionLedgerService(db_b, rules, clock=clock)
    yield people["requester"], people["teacher"], service_a, service_b
    await db_a.close()
    await db_b.close()


async def _balances(factory, account_id):
    async with factory() as db:
        account = await AccountLedger(db).get(account_id)
        return account.coins, account.locked_coins, account.sessions_taught


async def test_racing_accepts_escrow_once(race, file_session_factory):
    requester, teacher, service_a, service_b = race
    session_id = (await service_a.create(
        requester.id, teacher.id, "Python", "Async IO", "Thu 18:00", 4,
    )).id
    _interleave_after_first_read(
        service_a, lambda: service_b.accept(session_id, teacher.id),
    )

    with pytest.raises(InvalidStateError) as exc:
        await service_a.accept(session_id, teacher.id)
    assert exc.value.current_status == "accepted"

    coins, locked, _ = await _balances(file_session_factory, requester.id)
    assert (coins, locked) == (6, 4)


async def test_same_party_double_confirm_race(race, file_session_factory):
    requester, teacher, service_a, service_b = race
    session_id = (await service_a.create(
        requester.id, teacher.id, "Python", "Async IO", "Thu 18:00", 4,
    )).id
    await service_a.accept(session_id, teacher.id)
    _interleave_after_first_read(
        service_a, lambda: service_b.confirm(session_id, requester.id),
    )

    with pytest.raises(AlreadyConfirmedError):
        await service_a.confirm(session_id, requester.id)


async def test_both_parties_confirming_at_once_never_strands_session(
    race, file_session_factory,
):
    requester, teacher, service_a, service_b = race
    session_id = (await service_a.create(
        requester.id, teacher.id, "Python", "Async IO", "Thu 18:00", 4,
    )).id
    await service_a.accept(session_id, teacher.id)
    _interleave_after_first_read(
        service_a, lambda: service_b.confirm(session_id, teacher.id),
    )

    with pytest.raises(InvalidStateError) as exc:
        await service_a.confirm(session_id, requester.id)
    assert "concurrently" in exc.value.message

    retried = await service_a.confirm(session_id, requester.id)
    assert retried.status == "completed"

    teacher_coins, _, taught = await _balances(file_session_factory, teacher.id)
    requester_coins, locked, _ = await _balances(file_session_factory, requester.id)
    assert (teacher_coins, taught) == (4, 1)
    assert (requester_coins, locked) == (6, 0)


async def test_racing_cancel_and_accept(race, file_session_factory):
    requester, teacher, service_a, service_b = race
    session_id = (await service_a.create(
        requester.id, teacher.id, "Python", "Async IO", "Thu 18:00", 4,
    )).id
    _interleave_after_first_read(
        service_a, lambda: service_b.cancel(session_id, requester.id),
    )

    with pytest.raises(InvalidStateError) as exc:
        await service_a.accept(session_id, teacher.id)
    assert exc.value.current_status == "cancelled"

    coins, locked, _ = await _balances(file_session_factory, requester.id)
    assert (coins, locked) == (10, 0)


async def test_failure_after_session_write_rolls_back_completion(
    service, make_account, reload_account, monkeypatch,
):
    requester = await make_account("cora", role="contributor", coins=10)
    teacher = await make_account("theo", role="contributor", teaches=("Python",))
    session_id = (await service.create(
        requester.id, teacher.id, "Python", "SQL", "Fri 8:00", 5,
    )).id
    await service.accept(session_id, teacher.id)
    await service.confirm(session_id, requester.id)

    async def crash(self, account_id):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(AccountLedger, "increment_learned", crash)

    with pytest.raises(RuntimeError):
        await service.confirm(session_id, teacher.id)

    fresh = await service.get(session_id, teacher.id)
    assert fresh.status == "accepted"
    assert fresh.teacher_confirmed is False
    assert fresh.locked_coins == 5

    payer = await reload_account(requester.id)
    payee = await reload_account(teacher.id)
    assert (payer.coins, payer.locked_coins, payer.sessions_learned) == (5, 5, 0)
    assert (payee.coins, payee.sessions_taught) == (0, 0)

    monkeypatch.undo()
    completed = await service.confirm(session_id, teacher.id)
    assert completed.status == "completed"
    assert (await reload_account(teacher.id)).coins == 5
