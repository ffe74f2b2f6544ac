"""Admin user management API.

Mounted behind require_admin. The acting admin is still injected into
delete_user so the service can refuse self-deletion.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reviewdesk.auth.dependencies import require_admin
from reviewdesk.auth.jwt import IdentityClaim
from reviewdesk.config import settings
from reviewdesk.db.engine import get_db
from reviewdesk.schemas.account import AdminPasswordChange, UserRead, UserUpdate
from reviewdesk.schemas.base import envelope
from reviewdesk.services.accounts import AccountDirectory, AccountService

router = APIRouter(prefix="/admin/users")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(AccountDirectory(db), settings.default_admin_email)


@router.get("")
async def list_users(svc: AccountService = Depends(_svc)):
    users = [UserRead.model_validate(a) for a in await svc.list_users()]
    return envelope({"users": users, "count": len(users)})


@router.put("/{account_id}")
async def update_user(
    account_id: str,
    body: UserUpdate,
    svc: AccountService = Depends(_svc),
):
    account = await svc.update_names(account_id, body.first_name, body.last_name)
    return envelope(
        {"user": UserRead.model_validate(account)},
        message="User updated successfully",
    )


@router.delete("/{account_id}")
async def delete_user(
    account_id: str,
    admin: IdentityClaim = Depends(require_admin),
    svc: AccountService = Depends(_svc),
):
    await svc.delete_account(admin, account_id)
    return envelope(message="User deleted successfully")


@router.post("/{account_id}/change-password")
async def change_password(
    account_id: str,
    body: AdminPasswordChange,
    svc: AccountService = Depends(_svc),
):
    await svc.set_password(account_id, body.new_password)
    return envelope(message="Password changed successfully")
