"""Auth API: registration and login.

Learn: Routes for account authentication:
- POST /auth/register → create an account (pending admin approval)
- POST /auth/login → email/password → JWT token

Register runs behind optional_auth: anonymous callers can only create
`user` accounts; an authenticated admin may also create `admin` accounts,
which start out approved and get a token straight away.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reviewdesk.auth.dependencies import optional_auth
from reviewdesk.auth.jwt import IdentityClaim, TokenCodec, get_token_codec
from reviewdesk.db.engine import get_db
from reviewdesk.db.models import RegistrationStatus, Role
from reviewdesk.schemas.account import (
    AccountSummary,
    LoginRequest,
    LoginUser,
    RegisterRequest,
)
from reviewdesk.schemas.base import envelope
from reviewdesk.services.accounts import AccountDirectory
from reviewdesk.services.registration import RegistrationService

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> RegistrationService:
    return RegistrationService(AccountDirectory(db), codec)


# ─── Register ────────────────────────────────────────────


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    identity: Optional[IdentityClaim] = Depends(optional_auth),
    svc: RegistrationService = Depends(_svc),
):
    """Create a new account. Non-admin accounts wait for approval."""
    account = await svc.register(
        email=body.email,
        password=body.password,
        registration_details=body.registration_details,
        role=body.role or Role.USER,
        trusted=identity is not None and identity.is_admin,
    )
    user = AccountSummary.model_validate(account)

    if account.registration_status is RegistrationStatus.PENDING:
        return envelope(
            {"user": user, "requiresApproval": True},
            message=(
                "Registration request submitted successfully. "
                "Your account is pending admin approval."
            ),
        )

    return envelope(
        {"user": user, "token": svc.issue_token(account)},
        message="User registered successfully",
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
async def login(body: LoginRequest, svc: RegistrationService = Depends(_svc)):
    """Login with email and password → JWT token."""
    account, token = await svc.login(body.email, body.password)
    return envelope(
        {"user": LoginUser.model_validate(account), "token": token},
        message="Login successful",
    )
