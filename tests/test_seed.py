"""Default admin seeding tests."""

import pytest

from reviewdesk.auth.password import verify_password
from reviewdesk.config import Settings
from reviewdesk.db.models import RegistrationStatus, Role
from reviewdesk.services.accounts import AccountDirectory
from reviewdesk.services.seed import SEEDED_ADMIN_DETAILS, ensure_default_admin


def _config(password: str = "seed-pass-1") -> Settings:
    return Settings(default_admin_email="Admin@Example.com", default_admin_password=password)


@pytest.mark.asyncio
async def test_seed_skipped_without_password(db_session):
    directory = AccountDirectory(db_session)
    assert await ensure_default_admin(directory, _config(password="")) is None
    assert await directory.find_all() == []


@pytest.mark.asyncio
async def test_seed_creates_admin(db_session):
    directory = AccountDirectory(db_session)

    admin = await ensure_default_admin(directory, _config())

    assert admin.email == "admin@example.com"
    assert admin.role is Role.ADMIN
    assert admin.registration_status is RegistrationStatus.APPROVED
    assert admin.registration_details == SEEDED_ADMIN_DETAILS
    assert verify_password("seed-pass-1", admin.password_hash)


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    directory = AccountDirectory(db_session)

    first = await ensure_default_admin(directory, _config())
    second = await ensure_default_admin(directory, _config())

    assert first.id == second.id
    assert len(await directory.find_all()) == 1


@pytest.mark.asyncio
async def test_seed_repairs_existing_account(db_session, make_account):
    await make_account(
        "admin@example.com",
        role=Role.USER,
        status=RegistrationStatus.REJECTED,
        password="old-password",
    )
    directory = AccountDirectory(db_session)

    admin = await ensure_default_admin(directory, _config())

    assert admin.role is Role.ADMIN
    assert admin.registration_status is RegistrationStatus.APPROVED
    assert admin.rejection_reason is None
    assert verify_password("seed-pass-1", admin.password_hash)
