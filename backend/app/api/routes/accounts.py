"""Accounts — provisioning (login stand-in), refresh, and skill-list writes.

Invariants:
    - POST /accounts is the only unauthenticated account route; it returns a bearer token
    - Every read of /me re-evaluates the upgrade policy (lazy beginner expiry)
    - Proof-link writes re-evaluate the upgrade policy in the same request
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import (
    get_account_service, get_current_account_id, get_identity_provider,
)
from app.core.domain_types import AccountId
from app.infrastructure.identity import JWTIdentityProvider
from app.schemas.account import (
    AccountProvision, AccountResponse, ProofLinksUpdate, ProvisionResponse,
    SkillHaveCreate, SkillWantCreate,
)
from app.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.post("", response_model=ProvisionResponse)
async def provision_account(
    body: AccountProvision,
    response: Response,
    service: AccountService = Depends(get_account_service),
    identity: JWTIdentityProvider = Depends(get_identity_provider),
):
    """Find-or-create the account for an email and issue a token."""
    account, created = await service.provision(
        body.email, body.name, body.external_id,
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return ProvisionResponse(
        access_token=identity.issue_token(AccountId(account.id)),
        created=created,
        account=AccountResponse.model_validate(account),
    )


@router.get("/me", response_model=AccountResponse)
async def get_me(
    caller_id: AccountId = Depends(get_current_account_id),
    service: AccountService = Depends(get_account_service),
):
    account = await service.refresh(caller_id)
    return AccountResponse.model_validate(account)


@router.post(
    "/me/skills-have", response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_skill_have(
    body: SkillHaveCreate,
    caller_id: AccountId = Depends(get_current_account_id),
    service: AccountService = Depends(get_account_service),
):
    account = await service.add_skill_have(
        caller_id, body.name, body.level, body.proof_links,
    )
    return AccountResponse.model_validate(account)


@router.put("/me/skills-have/{skill_name}/proof-links", response_model=AccountResponse)
async def set_proof_links(
    skill_name: str,
    body: ProofLinksUpdate,
    caller_id: AccountId = Depends(get_current_account_id),
    service: AccountService = Depends(get_account_service),
):
    """Replace proof links; a non-empty list marks the skill teachable."""
    account = await service.set_proof_links(caller_id, skill_name, body.proof_links)
    return AccountResponse.model_validate(account)


@router.post(
    "/me/skills-want", response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_skill_want(
    body: SkillWantCreate,
    caller_id: AccountId = Depends(get_current_account_id),
    service: AccountService = Depends(get_account_service),
):
    account = await service.add_skill_want(caller_id, body.name)
    return AccountResponse.model_validate(account)
