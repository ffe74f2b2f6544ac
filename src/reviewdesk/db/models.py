"""SQLAlchemy ORM models: single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
The portable `Uuid` and non-native `Enum` types keep the schema valid on both
PostgreSQL (production) and SQLite (local runs and tests).

Role and registration status are closed enums. Every decision point that
branches on them handles each member explicitly.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class RegistrationStatus(str, enum.Enum):
    """Registration lifecycle: pending → approved / rejected.

    Only approved accounts may log in. Admins move accounts between states.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Account(Base):
    """A reviewer or administrator account.

    Learn: `email` is stored trimmed and lower-cased, so the unique
    constraint is effectively case-insensitive. Admin accounts are always
    `approved`; `rejection_reason` is cleared whenever an account is approved.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=Role.USER,
    )
    registration_status: Mapped[RegistrationStatus] = mapped_column(
        Enum(
            RegistrationStatus,
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=RegistrationStatus.PENDING,
        index=True,
    )
    registration_details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rejection_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
