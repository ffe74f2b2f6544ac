"""Profile API: the caller's own account."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reviewdesk.auth.dependencies import require_auth
from reviewdesk.auth.jwt import IdentityClaim
from reviewdesk.config import settings
from reviewdesk.db.engine import get_db
from reviewdesk.schemas.account import PasswordChange, ProfileRead
from reviewdesk.schemas.base import envelope
from reviewdesk.services.accounts import AccountDirectory, AccountService

router = APIRouter(prefix="/profile")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(AccountDirectory(db), settings.default_admin_email)


@router.get("")
async def get_profile(
    identity: IdentityClaim = Depends(require_auth),
    svc: AccountService = Depends(_svc),
):
    account = await svc.get_profile(identity)
    return envelope({"user": ProfileRead.model_validate(account)})


@router.post("/change-password")
async def change_password(
    body: PasswordChange,
    identity: IdentityClaim = Depends(require_auth),
    svc: AccountService = Depends(_svc),
):
    await svc.change_own_password(
        identity,
        body.old_password,
        body.new_password,
        body.confirm_password,
    )
    return envelope(message="Password changed successfully")
