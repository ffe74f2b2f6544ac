"""Test fixtures: isolated in-memory database and document store per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI without a server:

1. Environment is set BEFORE reviewdesk is imported, because Settings is
   built once at import time (fast bcrypt, a real-length JWT secret).
2. Each test gets its own in-memory SQLite engine. StaticPool keeps the
   single connection alive, so every session sees the same database.
3. get_db and get_blob_store are overridden; auth is NOT. Tests mint real
   tokens with the same TokenCodec the app uses and go through the real
   require_auth / require_admin / optional_auth gates.

httpx's ASGITransport doesn't run the lifespan, so admin seeding is
tested directly in test_seed.py.
"""

import os

os.environ.setdefault("REVIEWDESK_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REVIEWDESK_JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")
os.environ.setdefault("REVIEWDESK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("REVIEWDESK_DEFAULT_ADMIN_EMAIL", "admin@reviewdesk.test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reviewdesk.auth.jwt import IdentityClaim, get_token_codec
from reviewdesk.auth.password import hash_password
from reviewdesk.db.engine import get_db
from reviewdesk.db.models import Account, Base, RegistrationStatus, Role
from reviewdesk.main import app
from reviewdesk.storage import get_blob_store
from reviewdesk.storage.local import LocalBlobStore

DEFAULT_PASSWORD = "secret123"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
    await engine.dispose()


@pytest.fixture()
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "documents")


@pytest_asyncio.fixture()
async def client(db_session, blob_store):
    """HTTP client with the database and blob store overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def codec():
    return get_token_codec()


@pytest_asyncio.fixture()
async def make_account(db_session):
    """Factory: insert an account directly, bypassing the registration rules."""

    async def _make(
        email: str,
        *,
        role: Role = Role.USER,
        status: RegistrationStatus = RegistrationStatus.APPROVED,
        password: str = DEFAULT_PASSWORD,
        details: str = "Reviewer for the contracts team",
    ) -> Account:
        account = Account(
            email=email,
            password_hash=hash_password(password),
            role=role,
            registration_status=status,
            registration_details=details,
        )
        db_session.add(account)
        await db_session.commit()
        await db_session.refresh(account)
        return account

    return _make


def bearer(codec, account: Account) -> dict:
    """Authorization header for `account`, signed by the app's codec."""
    token = codec.issue(
        IdentityClaim(subject_id=str(account.id), email=account.email, role=account.role)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def admin(make_account):
    return await make_account("boss@example.com", role=Role.ADMIN)


@pytest_asyncio.fixture()
async def reviewer(make_account):
    return await make_account("reviewer@example.com")


@pytest.fixture()
def headers_for(codec):
    """Factory: Authorization header for any account."""
    return lambda account: bearer(codec, account)


@pytest.fixture()
def admin_headers(codec, admin):
    return bearer(codec, admin)


@pytest.fixture()
def user_headers(codec, reviewer):
    return bearer(codec, reviewer)
