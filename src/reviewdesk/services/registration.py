"""Registration lifecycle: who may log in, and how accounts get there.

Learn: Every account moves through a small state machine:

    pending ──approve──▶ approved
       │                  ▲   │
       └──reject──▶ rejected ◀┘ (reject)
                     └──approve──┘

- register() creates `pending` accounts. An `admin` account starts
  `approved`, but only through a trusted path (an authenticated admin
  creating it, or the startup seeding routine).
- approve()/reject() are admin-only. Moving an account into the state it
  is already in is a 409, not a silent no-op.
- login() verifies the password BEFORE looking at the status. A wrong
  password always looks the same, so the status of someone else's account
  never leaks.
"""

import re
from typing import Optional, assert_never

import structlog
from sqlalchemy.exc import IntegrityError

from reviewdesk.auth.jwt import IdentityClaim, TokenCodec
from reviewdesk.auth.password import hash_password, placeholder_hash, verify_password
from reviewdesk.db.models import Account, RegistrationStatus, Role
from reviewdesk.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from reviewdesk.services.accounts import (
    AccountDirectory,
    normalize_email,
    validate_new_password,
)

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_DETAILS_LENGTH = 10
MAX_DETAILS_LENGTH = 1000
MAX_REJECTION_REASON_LENGTH = 500

INVALID_CREDENTIALS = "Invalid email or password"


def initial_status(role: Role) -> RegistrationStatus:
    """Admins start approved; everyone else waits for an admin."""
    if role is Role.ADMIN:
        return RegistrationStatus.APPROVED
    if role is Role.USER:
        return RegistrationStatus.PENDING
    assert_never(role)


class RegistrationService:
    """Register, log in, and move accounts through the approval workflow."""

    def __init__(self, directory: AccountDirectory, codec: TokenCodec):
        self.directory = directory
        self.codec = codec

    def issue_token(self, account: Account) -> str:
        return self.codec.issue(
            IdentityClaim(
                subject_id=str(account.id),
                email=account.email,
                role=account.role,
            )
        )

    # ─── Register ────────────────────────────────────────

    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        registration_details: Optional[str],
        role: Role = Role.USER,
        trusted: bool = False,
    ) -> Account:
        """Create an account awaiting approval.

        `trusted` must be True for an admin role; untrusted admin requests
        are refused rather than downgraded.
        """
        if not email or not email.strip():
            raise InvalidInputError("Email is required")
        if not EMAIL_PATTERN.match(email.strip()):
            raise InvalidInputError("Please provide a valid email address")
        validate_new_password(password)
        details = (registration_details or "").strip()
        if not details:
            raise InvalidInputError("Registration details are required")
        if len(details) < MIN_DETAILS_LENGTH:
            raise InvalidInputError(
                f"Registration details must be at least {MIN_DETAILS_LENGTH} characters long"
            )
        if len(details) > MAX_DETAILS_LENGTH:
            raise InvalidInputError(
                f"Registration details must not exceed {MAX_DETAILS_LENGTH} characters"
            )
        if role is Role.ADMIN and not trusted:
            logger.warning("registration.admin_role_refused", email=email)
            raise ForbiddenError("Only administrators can create administrator accounts")

        normalized = normalize_email(email)
        if await self.directory.find_by_email(normalized):
            logger.warning("registration.duplicate_email", email=normalized)
            raise ConflictError("User with this email already exists")

        account = Account(
            email=normalized,
            password_hash=hash_password(password),
            role=role,
            registration_status=initial_status(role),
            registration_details=details,
        )
        try:
            account = await self.directory.insert(account)
        except IntegrityError:
            await self.directory.db.rollback()
            raise ConflictError("User with this email already exists")

        logger.info(
            "registration.created",
            email=account.email,
            status=account.registration_status.value,
        )
        return account

    # ─── Login ───────────────────────────────────────────

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[Account, str]:
        """Authenticate and return (account, token)."""
        if not email or not password:
            raise InvalidInputError("Email and password are required")

        normalized = normalize_email(email)
        account = await self.directory.find_by_email(normalized)
        if account is None:
            verify_password(password, placeholder_hash())
            logger.warning("auth.login_unknown_email", email=normalized)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        # Password first, status second.
        if not verify_password(password, account.password_hash):
            logger.warning("auth.login_bad_password", email=normalized)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        status = account.registration_status
        if status is RegistrationStatus.PENDING:
            logger.warning("auth.login_pending", email=normalized)
            raise ForbiddenError(
                "Your account is pending admin approval. "
                "Please wait for approval before logging in."
            )
        elif status is RegistrationStatus.REJECTED:
            logger.warning("auth.login_rejected", email=normalized)
            if account.rejection_reason:
                raise ForbiddenError(
                    f"Your registration was rejected: {account.rejection_reason}"
                )
            raise ForbiddenError(
                "Your registration was rejected. "
                "Please contact an administrator for more information."
            )
        elif status is RegistrationStatus.APPROVED:
            pass
        else:
            assert_never(status)

        logger.info("auth.login_succeeded", email=normalized)
        return account, self.issue_token(account)

    # ─── Admin workflow ─────────────────────────────────

    async def list_registrations(
        self, status: Optional[RegistrationStatus] = None
    ) -> list[Account]:
        return await self.directory.find_all(status)

    async def list_pending(self) -> list[Account]:
        return await self.directory.find_all(RegistrationStatus.PENDING)

    async def _get(self, account_id: str) -> Account:
        account = await self.directory.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    async def approve(self, account_id: str) -> Account:
        account = await self._get(account_id)

        status = account.registration_status
        if status is RegistrationStatus.APPROVED:
            raise ConflictError("User is already approved")
        elif status in (RegistrationStatus.PENDING, RegistrationStatus.REJECTED):
            pass
        else:
            assert_never(status)

        account.registration_status = RegistrationStatus.APPROVED
        account.rejection_reason = None
        account = await self.directory.save(account)
        logger.info("registration.approved", email=account.email)
        return account

    async def reject(self, account_id: str, reason: Optional[str] = None) -> Account:
        account = await self._get(account_id)

        status = account.registration_status
        if status is RegistrationStatus.REJECTED:
            raise ConflictError("User is already rejected")
        elif status in (RegistrationStatus.PENDING, RegistrationStatus.APPROVED):
            pass
        else:
            assert_never(status)

        if account.role is Role.ADMIN:
            raise ForbiddenError("Administrator accounts cannot be rejected")

        reason = (reason or "").strip()
        if len(reason) > MAX_REJECTION_REASON_LENGTH:
            raise InvalidInputError(
                f"Rejection reason must not exceed {MAX_REJECTION_REASON_LENGTH} characters"
            )

        account.registration_status = RegistrationStatus.REJECTED
        if reason:
            account.rejection_reason = reason
        account = await self.directory.save(account)
        logger.info(
            "registration.rejected",
            email=account.email,
            reason=account.rejection_reason,
        )
        return account
