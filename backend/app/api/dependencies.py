"""API Dependencies — identity, economy rules and service wiring for route handlers.

Invariants:
    - Every session/account route resolves the caller through get_current_account_id
    - Services are request-scoped: one AsyncSession per request (get_db)
    - EconomyRules built from Settings here, never inside core

Design Decisions:
    - HTTPBearer(auto_error=False): missing credentials become AuthenticationError
      so they render through the uniform error envelope
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import AccountId
from app.core.economy_rules import EconomyRules
from app.core.errors import AuthenticationError
from app.infrastructure.database import get_db
from app.infrastructure.identity import JWTIdentityProvider
from app.services.account_service import AccountService
from app.services.session_ledger import SessionLedgerService

_bearer = HTTPBearer(auto_error=False)


def get_identity_provider() -> JWTIdentityProvider:
    settings = get_settings()
    return JWTIdentityProvider(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_minutes=settings.access_token_ttl_minutes,
    )


def get_economy_rules() -> EconomyRules:
    return get_settings().economy_rules()


async def get_current_account_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    identity: JWTIdentityProvider = Depends(get_identity_provider),
) -> AccountId:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    return identity.resolve(credentials.credentials)


def get_session_service(
    db: AsyncSession = Depends(get_db),
    rules: EconomyRules = Depends(get_economy_rules),
) -> SessionLedgerService:
    return SessionLedgerService(db, rules)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    rules: EconomyRules = Depends(get_economy_rules),
) -> AccountService:
    return AccountService(db, rules)
