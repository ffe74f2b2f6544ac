"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A single access token (7 days by default) carries the identity claim:
the account id in `sub`, plus `email` and `role`. There is no refresh
token; callers log in again when the token expires.

The signing key never travels inside the token: it comes from the
Settings object handed to TokenCodec at construction time.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt

from reviewdesk.config import Settings, settings
from reviewdesk.db.models import Role


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    """The token's `exp` claim is in the past."""


class TokenMalformedError(TokenError):
    """Bad signature, bad structure, or missing/unknown claims."""


@dataclass(frozen=True)
class IdentityClaim:
    """The authenticated subject carried by a token."""

    subject_id: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class TokenCodec:
    """Issues and verifies signed, time-limited identity tokens."""

    def __init__(self, config: Settings):
        self._secret = config.jwt_secret
        self._algorithm = config.jwt_algorithm
        self._default_ttl = timedelta(minutes=config.access_token_expire_minutes)

    def issue(self, claim: IdentityClaim, ttl: Optional[timedelta] = None) -> str:
        """Create a JWT access token for the claim."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": claim.subject_id,
            "email": claim.email,
            "role": claim.role.value,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self._default_ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> IdentityClaim:
        """Verify and decode a JWT token.

        Returns the identity claim on success.
        Raises TokenExpiredError or TokenMalformedError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenMalformedError(f"Invalid token: {e}")

        try:
            return IdentityClaim(
                subject_id=str(payload["sub"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
            )
        except (KeyError, ValueError) as e:
            raise TokenMalformedError(f"Invalid token claims: {e}")


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    """FastAPI dependency: the process-wide codec built from settings."""
    return TokenCodec(settings)
