"""Account Schemas — provisioning input, skill-list writes, and the account view.

Invariants:
    - AccountProvision.email must contain "@"; normalization happens in the service
    - SkillHaveCreate.level restricted to SkillLevel values
    - allowed_to_teach is read-only on every input model
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import SkillLevel


class AccountProvision(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    name: str = Field("", max_length=200)
    external_id: str | None = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def require_at_sign(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class SkillHaveCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    level: SkillLevel
    proof_links: list[str] = Field(default_factory=list)


class ProofLinksUpdate(BaseModel):
    proof_links: list[str]


class SkillWantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class SkillHaveView(BaseModel):
    name: str
    level: SkillLevel
    proof_links: list[str] = Field(default_factory=list)
    allowed_to_teach: bool = False


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
    coins: int
    locked_coins: int
    beginner_credits: int
    reputation: int
    sessions_taught: int
    sessions_learned: int
    skills_have: list[SkillHaveView]
    skills_want: list[str]
    created_at: datetime
    beginner_expiry: datetime | None = None


class ProvisionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    created: bool
    account: AccountResponse
