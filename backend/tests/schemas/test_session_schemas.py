"""Session and account schemas — boundary validation before any service runs.

Invariants:
    - Booking text fields are stripped and must be non-empty
    - stake_coins defaults to 0 and cannot be negative
    - RatingInput keeps the raw JSON value (type and range checked downstream)
    - Skill levels restricted to the four known values
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.schemas.account import AccountProvision, SkillHaveCreate
from app.schemas.session import RatingInput, SessionCreate


def _booking(**overrides) -> dict:
    return {
        "teacher_id": str(uuid4()),
        "skill": "  Python ",
        "topic": "Closures",
        "time_slot": "Sun 10:00",
        **overrides,
    }


def test_booking_strips_text_and_defaults_stake():
    booking = SessionCreate(**_booking())
    assert booking.skill == "Python"
    assert booking.stake_coins == 0


@pytest.mark.parametrize("field", ["skill", "topic", "time_slot"])
def test_booking_rejects_blank_text(field):
    with pytest.raises(ValidationError):
        SessionCreate(**_booking(**{field: "   "}))


def test_booking_rejects_negative_stake():
    with pytest.raises(ValidationError):
        SessionCreate(**_booking(stake_coins=-1))


def test_rating_range_is_not_checked_here():
    assert RatingInput(rating=42).rating == 42
    assert RatingInput().rating is None


@pytest.mark.parametrize("raw, expected", [("true", True), ('"5"', "5"), ("4.0", 4.0)])
def test_rating_is_not_coerced(raw, expected):
    rating = RatingInput.model_validate_json(f'{{"rating": {raw}}}').rating
    assert rating == expected
    assert type(rating) is type(expected)


def test_skill_level_must_be_known():
    assert SkillHaveCreate(name="Go", level="Mentor").proof_links == []
    with pytest.raises(ValidationError):
        SkillHaveCreate(name="Go", level="Guru")


def test_provision_requires_at_sign():
    with pytest.raises(ValidationError):
        AccountProvision(email="plainaddress")
