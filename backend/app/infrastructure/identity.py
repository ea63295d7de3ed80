"""Identity Provider — bearer JWT issuance and verification.

Invariants:
    - Tokens carry the account UUID in `sub` and an `exp` claim
    - resolve() raises AuthenticationError for any bad, expired or foreign token;
      it never returns a partial identity
    - Whether the account still exists is NOT checked here (services do that)

Design Decisions:
    - PyJWT with a shared HS256 secret from Settings: the OAuth exchange that
      precedes token issuance lives outside this service
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from app.core.domain_types import AccountId
from app.core.errors import AuthenticationError


class JWTIdentityProvider:
    """Implements core.repository_protocols.IdentityProvider."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)

    def issue_token(self, account_id: AccountId) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": str(account_id), "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def resolve(self, token: str) -> AccountId:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.PyJWTError:
            raise AuthenticationError("Invalid or expired token")
        try:
            return AccountId(UUID(payload["sub"]))
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Token has no valid subject")
