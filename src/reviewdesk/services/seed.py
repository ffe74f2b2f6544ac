"""Default administrator seeding.

Learn: This is the one trusted path that creates an `admin` account
without an existing admin. It runs in the app lifespan and from
`reviewdesk seed-admin`. It is idempotent: an existing account with the
configured email is repaired (password, role, status) instead of duplicated.

With no REVIEWDESK_DEFAULT_ADMIN_PASSWORD set, seeding is skipped.
"""

from typing import Optional

import structlog

from reviewdesk.auth.password import hash_password, verify_password
from reviewdesk.config import Settings
from reviewdesk.db.models import Account, RegistrationStatus, Role
from reviewdesk.services.accounts import AccountDirectory, normalize_email

logger = structlog.get_logger()

SEEDED_ADMIN_DETAILS = "System administrator - auto-created on server startup"


async def ensure_default_admin(
    directory: AccountDirectory, config: Settings
) -> Optional[Account]:
    """Create or repair the configured default administrator."""
    if not config.default_admin_password:
        logger.warning(
            "seed.admin_skipped",
            reason="REVIEWDESK_DEFAULT_ADMIN_PASSWORD is not set",
        )
        return None

    email = normalize_email(config.default_admin_email)
    existing = await directory.find_by_email(email)

    if existing is None:
        admin = Account(
            email=email,
            password_hash=hash_password(config.default_admin_password),
            role=Role.ADMIN,
            registration_status=RegistrationStatus.APPROVED,
            registration_details=SEEDED_ADMIN_DETAILS,
        )
        admin = await directory.insert(admin)
        logger.info("seed.admin_created", email=email)
        return admin

    changed = []
    if not verify_password(config.default_admin_password, existing.password_hash):
        existing.password_hash = hash_password(config.default_admin_password)
        changed.append("password")
    if existing.role is not Role.ADMIN:
        existing.role = Role.ADMIN
        changed.append("role")
    if existing.registration_status is not RegistrationStatus.APPROVED:
        existing.registration_status = RegistrationStatus.APPROVED
        existing.rejection_reason = None
        if not existing.registration_details:
            existing.registration_details = SEEDED_ADMIN_DETAILS
        changed.append("registration_status")

    if changed:
        existing = await directory.save(existing)
        logger.info("seed.admin_updated", email=email, fields=changed)
    else:
        logger.debug("seed.admin_present", email=email)
    return existing
