"""Registration review API (admin only).

The whole router is mounted behind require_admin in api/__init__.py.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reviewdesk.auth.jwt import TokenCodec, get_token_codec
from reviewdesk.db.engine import get_db
from reviewdesk.db.models import RegistrationStatus
from reviewdesk.schemas.account import AccountSummary, RegistrationRead, RejectRequest
from reviewdesk.schemas.base import envelope
from reviewdesk.services.accounts import AccountDirectory
from reviewdesk.services.registration import RegistrationService

router = APIRouter(prefix="/registrations")


def _svc(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> RegistrationService:
    return RegistrationService(AccountDirectory(db), codec)


def _listing(accounts) -> dict:
    registrations = [RegistrationRead.model_validate(a) for a in accounts]
    return {"registrations": registrations, "count": len(registrations)}


@router.get("/pending")
async def list_pending(svc: RegistrationService = Depends(_svc)):
    return envelope(_listing(await svc.list_pending()))


@router.get("")
async def list_registrations(
    status: Optional[str] = None,
    svc: RegistrationService = Depends(_svc),
):
    """All registrations, optionally filtered by ?status=pending|approved|rejected.

    Unknown status values are ignored, same as no filter.
    """
    status_filter = None
    if status in {s.value for s in RegistrationStatus}:
        status_filter = RegistrationStatus(status)
    return envelope(_listing(await svc.list_registrations(status_filter)))


@router.post("/{account_id}/approve")
async def approve(account_id: str, svc: RegistrationService = Depends(_svc)):
    account = await svc.approve(account_id)
    return envelope(
        {"user": AccountSummary.model_validate(account)},
        message="Registration approved successfully",
    )


@router.post("/{account_id}/reject")
async def reject(
    account_id: str,
    body: Optional[RejectRequest] = Body(None),
    svc: RegistrationService = Depends(_svc),
):
    reason = body.rejection_reason if body else None
    account = await svc.reject(account_id, reason)
    return envelope(
        {
            "user": AccountSummary.model_validate(account),
            "rejectionReason": account.rejection_reason,
        },
        message="Registration rejected successfully",
    )
