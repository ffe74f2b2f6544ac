"""Auth API tests: registration, login, and the approval round trip.

Learn: Tests cover:
1. Registration validation + duplicate prevention
2. Who may create admin accounts
3. Login: password checked before registration status
4. register → pending → approve → login → token decodes to the account
"""

import uuid

import pytest

from reviewdesk.db.models import RegistrationStatus, Role

DETAILS = "I review supplier contracts for the legal team."


def _email(tag: str) -> str:
    return f"{tag}-{uuid.uuid4().hex[:8]}@example.com"


async def _register(client, email, password="secret123", details=DETAILS, **extra):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "registrationDetails": details, **extra},
    )


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_creates_pending_account(client):
    email = _email("new")
    r = await _register(client, email)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"].startswith("Registration request submitted successfully")
    assert body["data"]["requiresApproval"] is True
    assert "token" not in body["data"]
    user = body["data"]["user"]
    assert user["email"] == email
    assert user["role"] == "user"
    assert user["registrationStatus"] == "pending"


@pytest.mark.asyncio
async def test_register_normalizes_email(client):
    r = await _register(client, "  Mixed.Case@Example.COM ")
    assert r.status_code == 201
    assert r.json()["data"]["user"]["email"] == "mixed.case@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    email = _email("dup")
    assert (await _register(client, email)).status_code == 201

    r = await _register(client, email.upper())
    assert r.status_code == 409
    assert r.json()["error"]["message"] == "User with this email already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"email": ""}, "Email is required"),
        ({"email": "not-an-email"}, "Please provide a valid email address"),
        ({"password": "abc"}, "Password must be at least 6 characters long"),
        ({"details": ""}, "Registration details are required"),
        ({"details": "too short"}, "Registration details must be at least 10 characters long"),
        ({"details": "x" * 1001}, "Registration details must not exceed 1000 characters"),
    ],
)
async def test_register_validation(client, overrides, message):
    args = {"email": _email("bad"), "password": "secret123", "details": DETAILS}
    args.update(overrides)
    r = await _register(client, args["email"], args["password"], args["details"])
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": {"message": message}}


@pytest.mark.asyncio
async def test_anonymous_admin_registration_refused(client):
    r = await _register(client, _email("sneaky"), role="admin")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_user_cannot_register_admin(client, user_headers):
    r = await client.post(
        "/api/auth/register",
        headers=user_headers,
        json={
            "email": _email("sneaky"),
            "password": "secret123",
            "registrationDetails": DETAILS,
            "role": "admin",
        },
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_registers_admin_approved_with_token(client, admin_headers):
    r = await client.post(
        "/api/auth/register",
        headers=admin_headers,
        json={
            "email": _email("deputy"),
            "password": "secret123",
            "registrationDetails": DETAILS,
            "role": "admin",
        },
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["user"]["role"] == "admin"
    assert data["user"]["registrationStatus"] == "approved"
    assert data["token"]
    assert r.json()["message"] == "User registered successfully"


@pytest.mark.asyncio
async def test_register_with_invalid_token_is_401(client):
    r = await client.post(
        "/api/auth/register",
        headers={"Authorization": "Bearer garbage"},
        json={"email": _email("x"), "password": "secret123", "registrationDetails": DETAILS},
    )
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_approved(client, reviewer, codec):
    r = await client.post(
        "/api/auth/login",
        json={"email": "Reviewer@Example.com", "password": "secret123"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"] == {
        "id": str(reviewer.id),
        "email": "reviewer@example.com",
        "role": "user",
    }
    identity = codec.verify(body["data"]["token"])
    assert identity.subject_id == str(reviewer.id)


@pytest.mark.asyncio
async def test_login_missing_fields(client):
    r = await client.post("/api/auth/login", json={"email": "a@x.com"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Email and password are required"


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    r = await client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret123"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unknown_email_still_checks_a_hash(client, monkeypatch):
    from reviewdesk.auth.password import placeholder_hash
    from reviewdesk.services import registration

    checked = []
    real_verify = registration.verify_password

    def recording_verify(password, password_hash):
        checked.append(password_hash)
        return real_verify(password, password_hash)

    monkeypatch.setattr(registration, "verify_password", recording_verify)
    r = await client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret123"})

    assert r.status_code == 401
    assert checked == [placeholder_hash()]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", list(RegistrationStatus))
async def test_login_wrong_password_is_401_for_every_status(client, make_account, status):
    await make_account("who@example.com", status=status)
    r = await client.post("/api/auth/login", json={"email": "who@example.com", "password": "nope!!"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_pending_is_403(client, make_account):
    await make_account("wait@example.com", status=RegistrationStatus.PENDING)
    r = await client.post("/api/auth/login", json={"email": "wait@example.com", "password": "secret123"})
    assert r.status_code == 403
    assert "pending admin approval" in r.json()["error"]["message"]


@pytest.mark.asyncio
async def test_login_rejected_shows_reason(client, make_account, db_session):
    account = await make_account("no@example.com", status=RegistrationStatus.REJECTED)
    account.rejection_reason = "Unknown organisation"
    await db_session.commit()

    r = await client.post("/api/auth/login", json={"email": "no@example.com", "password": "secret123"})
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "Your registration was rejected: Unknown organisation"


@pytest.mark.asyncio
async def test_login_rejected_without_reason(client, make_account):
    await make_account("no2@example.com", status=RegistrationStatus.REJECTED)
    r = await client.post("/api/auth/login", json={"email": "no2@example.com", "password": "secret123"})
    assert r.status_code == 403
    assert r.json()["error"]["message"].startswith("Your registration was rejected.")


# ═══════════════════════════════════════════════════════════
# Full lifecycle
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_approve_login_flow(client, admin_headers, codec):
    """Pending until an admin approves; then the token carries the account."""
    r = await _register(client, "a@x.com")
    assert r.status_code == 201
    account_id = r.json()["data"]["user"]["id"]

    r = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret123"})
    assert r.status_code == 403

    r = await client.post(f"/api/registrations/{account_id}/approve", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["user"]["registrationStatus"] == "approved"

    r = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret123"})
    assert r.status_code == 200
    identity = codec.verify(r.json()["data"]["token"])
    assert identity.email == "a@x.com"
    assert identity.role is Role.USER
    assert identity.subject_id == account_id
