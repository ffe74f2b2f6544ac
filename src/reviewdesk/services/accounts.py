"""Account directory and account administration.

Learn: AccountDirectory is the only code that talks to the accounts table.
It is a thin repository (find, insert, save, delete) and knows one
rule: emails are trimmed and lower-cased on the way in, so lookups are
case-insensitive.

AccountService builds the profile and admin user-management operations
on top of it, including the two delete guardrails:
- an admin can't delete their own account
- nobody can delete the configured default administrator
"""

import uuid
from typing import Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewdesk.auth.jwt import IdentityClaim
from reviewdesk.auth.password import hash_password, verify_password
from reviewdesk.db.models import Account, RegistrationStatus
from reviewdesk.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _as_uuid(account_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(account_id, uuid.UUID):
        return account_id
    try:
        return uuid.UUID(str(account_id))
    except ValueError:
        return None


def validate_new_password(password: Optional[str], field: str = "Password") -> str:
    if not password:
        raise InvalidInputError(f"{field} is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(
            f"{field} must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


class AccountDirectory:
    """Repository facade over the accounts table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[Account]:
        result = await self.db.execute(
            select(Account).where(Account.email == normalize_email(email))
        )
        return result.scalars().first()

    async def find_by_id(self, account_id: Union[str, uuid.UUID]) -> Optional[Account]:
        key = _as_uuid(account_id)
        if key is None:
            return None
        return await self.db.get(Account, key)

    async def find_all(
        self, status: Optional[RegistrationStatus] = None
    ) -> list[Account]:
        """All accounts, newest first, optionally filtered by status."""
        q = select(Account).order_by(Account.created_at.desc())
        if status is not None:
            q = q.where(Account.registration_status == status)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def insert(self, account: Account) -> Account:
        account.email = normalize_email(account.email)
        self.db.add(account)
        await self.db.commit()
        await self.db.refresh(account)
        return account

    async def save(self, account: Account) -> Account:
        self.db.add(account)
        await self.db.commit()
        await self.db.refresh(account)
        return account

    async def delete_by_id(self, account_id: Union[str, uuid.UUID]) -> None:
        key = _as_uuid(account_id)
        if key is None:
            return
        account = await self.db.get(Account, key)
        if account is None:
            return
        await self.db.delete(account)
        await self.db.commit()


class AccountService:
    """Profile and admin user-management operations."""

    def __init__(self, directory: AccountDirectory, default_admin_email: str):
        self.directory = directory
        self.default_admin_email = normalize_email(default_admin_email)

    async def _get(self, account_id: Union[str, uuid.UUID]) -> Account:
        account = await self.directory.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    # ─── Profile (self) ─────────────────────────────────

    async def get_profile(self, identity: IdentityClaim) -> Account:
        return await self._get(identity.subject_id)

    async def change_own_password(
        self,
        identity: IdentityClaim,
        old_password: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str],
    ) -> None:
        if not old_password:
            raise InvalidInputError("Old password is required")
        validate_new_password(new_password, field="New password")
        if not confirm_password:
            raise InvalidInputError("Password confirmation is required")
        if new_password != confirm_password:
            raise InvalidInputError("New password and confirmation do not match")
        if old_password == new_password:
            raise InvalidInputError("New password must be different from the old password")

        account = await self._get(identity.subject_id)
        if not verify_password(old_password, account.password_hash):
            logger.warning("profile.password_change_rejected", email=account.email)
            raise UnauthenticatedError("Old password is incorrect")

        account.password_hash = hash_password(new_password)
        await self.directory.save(account)
        logger.info("profile.password_changed", email=account.email)

    # ─── Admin user management ──────────────────────────

    async def list_users(self) -> list[Account]:
        return await self.directory.find_all()

    async def update_names(
        self,
        account_id: str,
        first_name: Optional[str],
        last_name: Optional[str],
    ) -> Account:
        first = (first_name or "").strip()
        last = (last_name or "").strip()
        if not first:
            raise InvalidInputError("First name is required")
        if len(first) > MAX_NAME_LENGTH:
            raise InvalidInputError(f"First name must not exceed {MAX_NAME_LENGTH} characters")
        if not last:
            raise InvalidInputError("Last name is required")
        if len(last) > MAX_NAME_LENGTH:
            raise InvalidInputError(f"Last name must not exceed {MAX_NAME_LENGTH} characters")

        account = await self._get(account_id)
        account.first_name = first
        account.last_name = last
        return await self.directory.save(account)

    async def set_password(self, account_id: str, new_password: Optional[str]) -> None:
        validate_new_password(new_password, field="New password")
        account = await self._get(account_id)
        account.password_hash = hash_password(new_password)
        await self.directory.save(account)
        logger.info("users.password_reset", email=account.email)

    async def delete_account(self, actor: IdentityClaim, account_id: str) -> None:
        account = await self._get(account_id)

        if str(account.id) == actor.subject_id:
            raise ForbiddenError("Cannot delete your own account")
        if account.email == self.default_admin_email:
            raise ForbiddenError("Cannot delete the default admin account")

        await self.directory.delete_by_id(account.id)
        logger.info("users.deleted", email=account.email, by=actor.email)
