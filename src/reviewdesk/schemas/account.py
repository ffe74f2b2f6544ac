"""Pydantic schemas for accounts, registration and login.

Learn: Input schemas are deliberately loose (everything optional);
the services validate and produce the exact 400 messages the client
shows. Read schemas never include the password hash.
"""

import uuid
from datetime import datetime
from typing import Optional

from reviewdesk.db.models import RegistrationStatus, Role
from reviewdesk.schemas.base import ApiModel


# ─── Auth ───────────────────────────────────────────────

class RegisterRequest(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    registration_details: Optional[str] = None


class LoginRequest(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AccountSummary(ApiModel):
    id: uuid.UUID
    email: str
    role: Role
    registration_status: RegistrationStatus


class LoginUser(ApiModel):
    id: uuid.UUID
    email: str
    role: Role


# ─── Registrations ──────────────────────────────────────

class RegistrationRead(ApiModel):
    id: uuid.UUID
    email: str
    role: Role
    registration_status: RegistrationStatus
    registration_details: str
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RejectRequest(ApiModel):
    rejection_reason: Optional[str] = None


# ─── Users / profile ────────────────────────────────────

class UserRead(ApiModel):
    id: uuid.UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role
    registration_status: RegistrationStatus
    registration_details: str = ""
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfileRead(ApiModel):
    id: uuid.UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role
    registration_details: str = ""
    created_at: datetime
    updated_at: datetime


class UserUpdate(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AdminPasswordChange(ApiModel):
    new_password: Optional[str] = None


class PasswordChange(ApiModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None
