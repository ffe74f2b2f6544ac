"""Document gateway: the only path from callers to the blob store.

Learn: Every caller-supplied filename goes through sanitize() before it
reaches the store; that is the whole defense against path traversal.

The gateway is stateless between calls. The interesting parts are:
1. open_stream → pulls the first chunk before any bytes are sent, so a
   broken source still becomes a clean 500. After that, failures are
   logged and the stream just ends (headers are already on the wire).
2. delete_many → accumulator over independent per-item attempts. One bad
   name never aborts the batch; the caller gets a three-way partition.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional, Sequence
from urllib.parse import quote

import structlog

from reviewdesk.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from reviewdesk.storage.base import (
    DEFAULT_CHUNK_SIZE,
    BlobNotFoundError,
    BlobReference,
    BlobStore,
    InvalidBlobNameError,
    StorageError,
)

logger = structlog.get_logger()

PDF_CONTENT_TYPE = "application/pdf"
PDF_EXTENSION = ".pdf"
CACHE_CONTROL = "public, max-age=3600"


@dataclass(frozen=True)
class SignedUrl:
    filename: str
    url: str
    expires_in: int
    expires_at: datetime


@dataclass(frozen=True)
class StoredDocument:
    filename: str
    size: int


@dataclass
class DocumentStream:
    """A ready-to-send document: response headers plus a chunk iterator."""

    filename: str
    media_type: str
    headers: dict[str, str]
    chunks: Iterator[bytes]


@dataclass(frozen=True)
class BulkDeleteFailure:
    name: str
    reason: str


@dataclass
class BulkDeleteReport:
    deleted: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    errors: list[BulkDeleteFailure] = field(default_factory=list)


def sanitize_filename(name: str) -> str:
    """Strip `..` sequences and leading separators from a caller-supplied name."""
    if not isinstance(name, str):
        raise InvalidInputError("Filename is required")
    cleaned = name.replace("..", "").lstrip("/\\")
    if not cleaned.strip():
        raise InvalidInputError("Filename is required")
    return cleaned


def inline_disposition(filename: str) -> str:
    """Content-Disposition for in-browser display, safe for non-ASCII names."""
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "")
    disposition = f'inline; filename="{ascii_name}"'
    if ascii_name != filename:
        disposition += f"; filename*=UTF-8''{quote(filename)}"
    return disposition


class DocumentGateway:
    """Signed URLs, listing, streaming, upload and deletion of PDF documents."""

    def __init__(
        self,
        store: BlobStore,
        *,
        signed_url_ttl: int = 3600,
        max_upload_bytes: int = 50 * 1024 * 1024,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.store = store
        self.signed_url_ttl = signed_url_ttl
        self.max_upload_bytes = max_upload_bytes
        self.chunk_size = chunk_size

    sanitize = staticmethod(sanitize_filename)

    def _require_existing(self, filename: str) -> None:
        try:
            exists = self.store.exists(filename)
        except InvalidBlobNameError:
            logger.warning("files.invalid_name", filename=filename)
            raise NotFoundError("File not found")
        except StorageError as e:
            logger.error("files.store_unavailable", filename=filename, error=str(e))
            raise InternalError("Document storage is unavailable")
        if not exists:
            logger.warning("files.not_found", filename=filename)
            raise NotFoundError("File not found")

    # ─── Signed URLs ─────────────────────────────────────

    def issue_signed_url(self, name: str) -> SignedUrl:
        """Read-only URL for the document, valid for signed_url_ttl seconds."""
        filename = self.sanitize(name)
        self._require_existing(filename)

        issued_at = datetime.now(timezone.utc)
        try:
            url = self.store.get_signed_url(filename, self.signed_url_ttl)
        except BlobNotFoundError:
            raise NotFoundError("File not found")
        except StorageError as e:
            logger.error("files.sign_failed", filename=filename, error=str(e))
            raise InternalError("Failed to generate signed URL")

        logger.info("files.signed_url_issued", filename=filename)
        return SignedUrl(
            filename=filename,
            url=url,
            expires_in=self.signed_url_ttl,
            expires_at=issued_at + timedelta(seconds=self.signed_url_ttl),
        )

    # ─── Listing ─────────────────────────────────────────

    def list_documents(self) -> list[BlobReference]:
        try:
            blobs = self.store.list("")
        except StorageError as e:
            logger.error("files.list_failed", error=str(e))
            raise InternalError("Failed to list files")

        documents = [b for b in blobs if b.name.lower().endswith(PDF_EXTENSION)]
        logger.info("files.listed", count=len(documents))
        return documents

    # ─── Streaming ───────────────────────────────────────

    def open_stream(self, name: str) -> DocumentStream:
        """Prepare a document for streaming to the caller.

        The first chunk is read here so that a source that fails immediately
        surfaces as a 500 instead of a truncated 200.
        """
        filename = self.sanitize(name)
        self._require_existing(filename)

        try:
            metadata = self.store.get_metadata(filename)
            source = self.store.open_read_stream(filename, self.chunk_size)
            first_chunk = next(source, b"")
        except BlobNotFoundError:
            raise NotFoundError("File not found")
        except (StorageError, OSError) as e:
            logger.error("files.stream_open_failed", filename=filename, error=str(e))
            raise InternalError("Error streaming file")

        headers = {
            "Content-Length": str(metadata.size),
            "Content-Disposition": inline_disposition(filename),
            "Cache-Control": CACHE_CONTROL,
            "Accept-Ranges": "bytes",
            "Content-Encoding": "identity",
        }
        return DocumentStream(
            filename=filename,
            media_type=metadata.content_type or PDF_CONTENT_TYPE,
            headers=headers,
            chunks=self._relay(filename, first_chunk, source),
        )

    def _relay(
        self, filename: str, first_chunk: bytes, source: Iterator[bytes]
    ) -> Iterator[bytes]:
        sent = 0
        try:
            if first_chunk:
                sent += len(first_chunk)
                yield first_chunk
            for chunk in source:
                sent += len(chunk)
                yield chunk
        except (StorageError, OSError):
            # Headers are already sent; all we can do is stop.
            logger.exception("files.stream_interrupted", filename=filename, bytes_sent=sent)
        finally:
            close = getattr(source, "close", None)
            if close is not None:
                close()

    # ─── Upload ──────────────────────────────────────────

    def upload(self, name: str, data: bytes, declared_type: Optional[str]) -> StoredDocument:
        if declared_type != PDF_CONTENT_TYPE:
            raise InvalidInputError("Only PDF files are allowed")
        if len(data) > self.max_upload_bytes:
            raise InvalidInputError(
                f"File size exceeds {self.max_upload_bytes // (1024 * 1024)}MB limit"
            )

        filename = self.sanitize(name)
        try:
            if self.store.exists(filename):
                logger.warning("files.upload_conflict", filename=filename)
                raise ConflictError("File with this name already exists")
            self.store.write(filename, data, declared_type)
        except InvalidBlobNameError:
            logger.warning("files.invalid_name", filename=filename)
            raise InvalidInputError("Invalid filename")
        except StorageError as e:
            logger.error("files.upload_failed", filename=filename, error=str(e))
            raise InternalError("Failed to upload file")

        logger.info("files.uploaded", filename=filename, size=len(data))
        return StoredDocument(filename=filename, size=len(data))

    # ─── Delete ──────────────────────────────────────────

    def delete(self, name: str) -> str:
        filename = self.sanitize(name)
        self._require_existing(filename)
        try:
            self.store.delete(filename)
        except BlobNotFoundError:
            raise NotFoundError("File not found")
        except StorageError as e:
            logger.error("files.delete_failed", filename=filename, error=str(e))
            raise InternalError("Failed to delete file")

        logger.info("files.deleted", filename=filename)
        return filename

    def delete_many(self, names: Sequence[str]) -> BulkDeleteReport:
        """Delete each name independently and report what happened to each.

        Names are processed one at a time; report order matches request order.
        """
        if not isinstance(names, (list, tuple)) or not names:
            raise InvalidInputError("Filenames array is required and must not be empty")

        report = BulkDeleteReport()
        for name in names:
            try:
                filename = self.sanitize(name)
                if not self.store.exists(filename):
                    logger.warning("files.not_found", filename=filename)
                    report.not_found.append(filename)
                    continue
                self.store.delete(filename)
            except BlobNotFoundError:
                report.not_found.append(filename)
            except Exception as e:
                logger.exception("files.bulk_delete_item_failed", filename=name)
                report.errors.append(
                    BulkDeleteFailure(
                        name=name if isinstance(name, str) else str(name),
                        reason=getattr(e, "message", None) or str(e),
                    )
                )
            else:
                report.deleted.append(filename)

        logger.info(
            "files.bulk_delete_completed",
            deleted=len(report.deleted),
            not_found=len(report.not_found),
            errors=len(report.errors),
        )
        return report
