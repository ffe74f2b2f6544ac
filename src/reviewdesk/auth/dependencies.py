"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request.

Two gates:
1. require_auth: bearer token in the Authorization header, mandatory.
2. optional_auth: bearer header first, then a `token` query parameter
   (inline PDF viewers can't set headers). No token → None, but a token
   that fails verification is always a 401.

require_role() composes on top of require_auth for admin-only routes.
On success the identity is also stored on request.state.identity.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request

from reviewdesk.auth.jwt import (
    IdentityClaim,
    TokenCodec,
    TokenExpiredError,
    TokenMalformedError,
    get_token_codec,
)
from reviewdesk.db.models import Role
from reviewdesk.errors import ForbiddenError, UnauthenticatedError

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


async def require_auth(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
) -> IdentityClaim:
    """Extract current identity (required: 401 if no valid token)."""
    authorization = request.headers.get("Authorization")

    if authorization is None:
        logger.warning("auth.missing_header", path=request.url.path)
        raise UnauthenticatedError("Authorization header is required")

    if not authorization.startswith(BEARER_PREFIX):
        logger.warning("auth.malformed_header", path=request.url.path)
        raise UnauthenticatedError('Authorization header must start with "Bearer "')

    token = authorization[len(BEARER_PREFIX):]
    if not token:
        logger.warning("auth.empty_token", path=request.url.path)
        raise UnauthenticatedError("Token is required")

    return _authenticate(request, token, codec)


async def optional_auth(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
) -> Optional[IdentityClaim]:
    """Extract current identity (optional: returns None if no token)."""
    token = None
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):]
    elif request.query_params.get("token"):
        # Fallback for clients that can't set headers (inline document viewers)
        token = request.query_params["token"]

    if not token:
        request.state.identity = None
        return None

    return _authenticate(request, token, codec)


def require_role(role: Role):
    """Build a dependency that admits only identities holding `role`."""

    async def _check_role(
        identity: Optional[IdentityClaim] = Depends(require_auth),
    ) -> IdentityClaim:
        if identity is None:
            raise UnauthenticatedError("Authentication required")
        if identity.role != role:
            logger.warning(
                "auth.role_denied",
                email=identity.email,
                role=identity.role.value,
                required=role.value,
            )
            raise ForbiddenError("Admin access required")
        return identity

    return _check_role


require_admin = require_role(Role.ADMIN)


def _authenticate(request: Request, token: str, codec: TokenCodec) -> IdentityClaim:
    """Verify the token and attach the identity to the request."""
    try:
        identity = codec.verify(token)
    except TokenExpiredError:
        logger.warning("auth.token_expired", path=request.url.path)
        raise UnauthenticatedError("Token has expired")
    except TokenMalformedError:
        logger.warning("auth.token_invalid", path=request.url.path)
        raise UnauthenticatedError("Invalid token")

    request.state.identity = identity
    logger.debug("auth.authenticated", email=identity.email)
    return identity
