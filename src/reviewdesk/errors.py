"""Error taxonomy shared by services and routes.

Learn: Services raise these instead of HTTPException so they stay usable
from the CLI and from tests without an HTTP layer. Each error carries the
HTTP status it maps to; main.py renders them into the failure envelope:

    {"success": false, "error": {"message": "..."}}
"""

from typing import Optional


class ReviewDeskError(Exception):
    """Base class for errors surfaced to callers."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class InvalidInputError(ReviewDeskError):
    """Malformed or missing caller data."""

    status_code = 400
    default_message = "Invalid request"


class UnauthenticatedError(ReviewDeskError):
    """Missing, invalid or expired credential."""

    status_code = 401
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(ReviewDeskError):
    """Valid credential, but the action is not allowed."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ReviewDeskError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ReviewDeskError):
    """Duplicate, or already in the target state."""

    status_code = 409
    default_message = "Conflict"


class InternalError(ReviewDeskError):
    status_code = 500
