"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Account owns balances; MentoringSession references two accounts

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from app.models.account import Account  # noqa: F401
from app.models.mentoring_session import MentoringSession  # noqa: F401
