"""Session Routes — HTTP surface of the session lifecycle.

Invariants:
    - Missing or bad bearer token -> 401 AUTHENTICATION_FAILED
    - Domain errors render the uniform envelope with the right status code
    - Transitions return the updated session body
"""

from uuid import uuid4

import pytest


@pytest.fixture
async def parties(make_account):
    requester = await make_account("rosa", role="contributor", coins=10)
    teacher = await make_account("tomas", role="contributor", teaches=("Python",))
    return requester, teacher


async def _create(client, auth_headers, requester, teacher, **overrides):
    body = {
        "teacher_id": str(teacher.id),
        "skill": "Python",
        "topic": "Context managers",
        "time_slot": "Sat 11:00",
        "stake_coins": 4,
        **overrides,
    }
    return await client.post(
        "/api/v1/sessions", json=body, headers=auth_headers(requester.id),
    )


async def test_full_lifecycle_over_http(client, auth_headers, parties):
    requester, teacher = parties
    res = await _create(client, auth_headers, requester, teacher)
    assert res.status_code == 201
    session_id = res.json()["id"]
    assert res.json()["requester_id"] == str(requester.id)

    steps = [
        ("accept", teacher, None, "accepted"),
        ("confirm", requester, None, "accepted"),
        ("confirm", teacher, None, "completed"),
        ("rate", requester, {"rating": 5}, "completed"),
        ("rate", teacher, {"rating": 4}, "closed"),
    ]
    for action, actor, body, expected in steps:
        res = await client.patch(
            f"/api/v1/sessions/{session_id}/{action}",
            json=body, headers=auth_headers(actor.id),
        )
        assert res.status_code == 200, res.json()
        assert res.json()["status"] == expected

    me = await client.get("/api/v1/accounts/me", headers=auth_headers(teacher.id))
    assert me.json()["coins"] == 4
    assert me.json()["sessions_taught"] == 1


async def test_missing_token_is_401(client, parties):
    res = await client.get("/api/v1/sessions")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_FAILED"


async def test_garbage_token_is_401(client):
    res = await client.get(
        "/api/v1/sessions", headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert res.status_code == 401


async def test_invalid_state_is_409_with_current_status(
    client, auth_headers, parties,
):
    requester, teacher = parties
    session_id = (await _create(client, auth_headers, requester, teacher)).json()["id"]
    await client.patch(
        f"/api/v1/sessions/{session_id}/reject", headers=auth_headers(teacher.id),
    )

    res = await client.patch(
        f"/api/v1/sessions/{session_id}/accept", headers=auth_headers(teacher.id),
    )
    assert res.status_code == 409
    error = res.json()["error"]
    assert error["category"] == "invalid_state"
    assert error["context"]["current_status"] == "rejected"


async def test_requester_cannot_accept(client, auth_headers, parties):
    requester, teacher = parties
    session_id = (await _create(client, auth_headers, requester, teacher)).json()["id"]
    res = await client.patch(
        f"/api/v1/sessions/{session_id}/accept", headers=auth_headers(requester.id),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


async def test_stake_above_balance_is_insufficient_funds(
    client, auth_headers, parties,
):
    requester, teacher = parties
    res = await _create(client, auth_headers, requester, teacher, stake_coins=50)
    assert res.status_code == 400
    assert res.json()["error"]["category"] == "insufficient_funds"


async def test_unknown_session_is_404(client, auth_headers, parties):
    requester, _ = parties
    res = await client.get(
        f"/api/v1/sessions/{uuid4()}", headers=auth_headers(requester.id),
    )
    assert res.status_code == 404


async def test_bad_rating_is_400_invalid_rating(client, auth_headers, parties):
    requester, teacher = parties
    session_id = (await _create(client, auth_headers, requester, teacher)).json()["id"]
    res = await client.patch(
        f"/api/v1/sessions/{session_id}/rate",
        json={"rating": 9}, headers=auth_headers(requester.id),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_RATING"


async def test_blank_topic_is_validation_error(client, auth_headers, parties):
    requester, teacher = parties
    res = await _create(client, auth_headers, requester, teacher, topic="   ")
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any(d["field"].endswith("topic") for d in error["details"])


async def test_list_only_shows_own_sessions(
    client, auth_headers, parties, make_account,
):
    requester, teacher = parties
    outsider = await make_account("otto", role="contributor", coins=3)
    await _create(client, auth_headers, requester, teacher)

    mine = await client.get("/api/v1/sessions", headers=auth_headers(teacher.id))
    theirs = await client.get("/api/v1/sessions", headers=auth_headers(outsider.id))
    assert len(mine.json()["sessions"]) == 1
    assert theirs.json()["sessions"] == []


async def test_boolean_rating_is_not_a_one_star(client, auth_headers, parties):
    requester, teacher = parties
    session_id = (await _create(client, auth_headers, requester, teacher)).json()["id"]
    for action, actor in (("accept", teacher), ("confirm", requester), ("confirm", teacher)):
        await client.patch(
            f"/api/v1/sessions/{session_id}/{action}", headers=auth_headers(actor.id),
        )

    for bad in (True, "5", 4.5):
        res = await client.patch(
            f"/api/v1/sessions/{session_id}/rate",
            json={"rating": bad}, headers=auth_headers(requester.id),
        )
        assert res.status_code == 400
        assert res.json()["error"]["code"] == "INVALID_RATING"

    session = await client.get(
        f"/api/v1/sessions/{session_id}", headers=auth_headers(requester.id),
    )
    assert session.json()["rating_given_by_requester"] is None
