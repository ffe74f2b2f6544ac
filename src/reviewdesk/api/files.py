"""Document API: listing, signed URLs, streaming proxy, upload, deletion.

Learn: Handlers here are plain `def`, not `async def`. The blob store
clients are blocking (boto3), so FastAPI runs these in its threadpool and
StreamingResponse iterates the sync chunk generator the same way.

Auth is per route rather than per router because the proxy accepts a
`token` query parameter (optional_auth) while the rest need a header.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from reviewdesk.auth.dependencies import optional_auth, require_admin, require_auth
from reviewdesk.auth.jwt import IdentityClaim
from reviewdesk.config import settings
from reviewdesk.errors import InvalidInputError, UnauthenticatedError
from reviewdesk.schemas.base import envelope
from reviewdesk.schemas.document import (
    BulkDeleteFailureRead,
    BulkDeleteRead,
    DocumentRead,
    SignedUrlRead,
    UploadRead,
)
from reviewdesk.services.documents import BulkDeleteReport, DocumentGateway
from reviewdesk.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/files")


def get_gateway(store: BlobStore = Depends(get_blob_store)) -> DocumentGateway:
    return DocumentGateway(
        store,
        signed_url_ttl=settings.signed_url_ttl_seconds,
        max_upload_bytes=settings.max_upload_bytes,
    )


def _bulk_delete_response(report: BulkDeleteReport) -> dict:
    result = BulkDeleteRead(
        deleted=report.deleted,
        not_found=report.not_found,
        errors=[BulkDeleteFailureRead(name=e.name, reason=e.reason) for e in report.errors],
    )
    return envelope(
        result,
        message=(
            f"Deleted {len(report.deleted)} file(s), "
            f"{len(report.not_found)} not found, {len(report.errors)} error(s)"
        ),
    )


def _filenames(payload: Any) -> Any:
    if isinstance(payload, dict):
        return payload.get("filenames")
    return payload


# ─── Listing ─────────────────────────────────────────────


@router.get("", dependencies=[Depends(require_auth)])
def list_files(gateway: DocumentGateway = Depends(get_gateway)):
    files = [
        DocumentRead(name=b.name, size=b.size, last_modified=b.last_modified)
        for b in gateway.list_documents()
    ]
    return envelope({"files": files, "count": len(files)})


# ─── Streaming proxy ─────────────────────────────────────


@router.get("/{filename}/proxy")
def proxy_file(
    filename: str,
    identity: Optional[IdentityClaim] = Depends(optional_auth),
    gateway: DocumentGateway = Depends(get_gateway),
):
    """Stream the document through the server for inline viewing."""
    if identity is None:
        raise UnauthenticatedError("Authentication required")

    stream = gateway.open_stream(filename)
    return StreamingResponse(
        stream.chunks,
        media_type=stream.media_type,
        headers=stream.headers,
    )


# ─── Upload ──────────────────────────────────────────────


@router.post("/upload", status_code=201, dependencies=[Depends(require_admin)])
def upload_file(
    file: Optional[UploadFile] = File(None),
    gateway: DocumentGateway = Depends(get_gateway),
):
    if file is None or not file.filename:
        raise InvalidInputError("No file uploaded")

    # One byte past the limit is enough to know it's too big.
    data = file.file.read(gateway.max_upload_bytes + 1)
    stored = gateway.upload(file.filename, data, file.content_type)
    return envelope(
        UploadRead(filename=stored.filename, size=stored.size),
        message="File uploaded successfully",
    )


# ─── Delete ──────────────────────────────────────────────


@router.post("/delete-multiple", dependencies=[Depends(require_admin)])
def delete_multiple(
    payload: Any = Body(None),
    gateway: DocumentGateway = Depends(get_gateway),
):
    return _bulk_delete_response(gateway.delete_many(_filenames(payload)))


@router.delete("", dependencies=[Depends(require_admin)])
def delete_files(
    payload: Any = Body(None),
    gateway: DocumentGateway = Depends(get_gateway),
):
    return _bulk_delete_response(gateway.delete_many(_filenames(payload)))


@router.delete("/{filename}", dependencies=[Depends(require_admin)])
def delete_file(filename: str, gateway: DocumentGateway = Depends(get_gateway)):
    deleted = gateway.delete(filename)
    return envelope({"filename": deleted}, message="File deleted successfully")


# ─── Signed URL ──────────────────────────────────────────


@router.get("/{filename}", dependencies=[Depends(require_auth)])
def get_signed_url(filename: str, gateway: DocumentGateway = Depends(get_gateway)):
    signed = gateway.issue_signed_url(filename)
    return envelope(
        SignedUrlRead(
            filename=signed.filename,
            url=signed.url,
            expires_in=signed.expires_in,
            expires_at=signed.expires_at,
        )
    )
