"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor comes from settings (12 by default, ~100ms per hash);
tests lower it to keep the suite fast.

Hashes written by bcryptjs ("$2a$...") verify fine with the Python
bcrypt package, so accounts migrated from older deployments keep working.
"""

from functools import lru_cache

import bcrypt

from reviewdesk.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=1)
def placeholder_hash() -> str:
    """A hash no account owns, checked against when the email is unknown.

    Learn: Running bcrypt for unknown emails too keeps login timing the
    same whether or not the account exists.
    """
    return hash_password("reviewdesk-placeholder-password")
