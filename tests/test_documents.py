"""DocumentGateway tests: sanitising, streaming, upload and bulk delete.

Learn: The gateway is synchronous and takes its store by injection, so
these tests use a LocalBlobStore on tmp_path, or a small in-test store
that fails on purpose to exercise the error paths.
"""

from datetime import datetime, timezone

import pytest

from reviewdesk.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from reviewdesk.services.documents import DocumentGateway, inline_disposition, sanitize_filename
from reviewdesk.storage.base import BlobMetadata, BlobNotFoundError, StorageError

PDF = b"%PDF-1.4\n" + b"x" * 200 + b"\n%%EOF\n"


@pytest.fixture()
def gateway(blob_store):
    return DocumentGateway(blob_store, chunk_size=64)


class FlakyStore:
    """Store whose reads fail either immediately or after some chunks."""

    def __init__(self, chunks_before_failure: int = 0, delete_error: str = None):
        self.chunks_before_failure = chunks_before_failure
        self.delete_error = delete_error
        self.closed = False

    def exists(self, name):
        return not name.startswith("missing")

    def get_metadata(self, name):
        return BlobMetadata(content_type="application/pdf", size=1000)

    def open_read_stream(self, name, chunk_size=64):
        def _chunks():
            try:
                for _ in range(self.chunks_before_failure):
                    yield b"y" * chunk_size
                raise StorageError("connection reset")
            finally:
                self.closed = True

        return _chunks()

    def delete(self, name):
        if self.delete_error and name.startswith("boom"):
            raise StorageError(self.delete_error)


# ═══════════════════════════════════════════════════════════
# Sanitize
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "raw, clean",
    [
        ("report.pdf", "report.pdf"),
        ("../../etc/passwd", "etc/passwd"),
        ("/abs/path.pdf", "abs/path.pdf"),
        ("..\\..\\win.pdf", "win.pdf"),
        ("a/../b.pdf", "a//b.pdf"),
        ("....//x.pdf", "x.pdf"),
    ],
)
def test_sanitize(raw, clean):
    assert sanitize_filename(raw) == clean


@pytest.mark.parametrize("raw", ["../../etc/passwd", "/../x", "\\..\\..\\y", ".../z"])
def test_sanitize_never_leaves_traversal_or_leading_separator(raw):
    cleaned = sanitize_filename(raw)
    assert ".." not in cleaned
    assert not cleaned.startswith(("/", "\\"))


@pytest.mark.parametrize("raw", ["", "..", "../..", "///", None])
def test_sanitize_empty_result_is_invalid(raw):
    with pytest.raises(InvalidInputError) as exc:
        sanitize_filename(raw)
    assert exc.value.message == "Filename is required"


def test_inline_disposition_ascii_and_unicode():
    assert inline_disposition("a.pdf") == 'inline; filename="a.pdf"'
    header = inline_disposition("résumé.pdf")
    assert header.startswith('inline; filename="rsum.pdf"')
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in header


# ═══════════════════════════════════════════════════════════
# Signed URLs and listing
# ═══════════════════════════════════════════════════════════


def test_signed_url_for_existing(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")
    before = datetime.now(timezone.utc)

    signed = gateway.issue_signed_url("a.pdf")

    assert signed.filename == "a.pdf"
    assert signed.url.startswith("file://")
    assert signed.expires_in == 3600
    assert (signed.expires_at - before).total_seconds() == pytest.approx(3600, abs=5)


def test_signed_url_missing_is_404(gateway):
    with pytest.raises(NotFoundError):
        gateway.issue_signed_url("nope.pdf")


def test_list_only_pdfs(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")
    blob_store.write("B.PDF", PDF, "application/pdf")
    blob_store.write("notes.txt", b"hi", "text/plain")

    names = sorted(d.name for d in gateway.list_documents())
    assert names == ["B.PDF", "a.pdf"]


# ═══════════════════════════════════════════════════════════
# Streaming
# ═══════════════════════════════════════════════════════════


def test_open_stream_headers_and_bytes(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")

    stream = gateway.open_stream("a.pdf")

    assert stream.media_type == "application/pdf"
    assert stream.headers["Content-Length"] == str(len(PDF))
    assert stream.headers["Content-Disposition"] == 'inline; filename="a.pdf"'
    assert stream.headers["Cache-Control"] == "public, max-age=3600"
    assert stream.headers["Accept-Ranges"] == "bytes"
    assert b"".join(stream.chunks) == PDF


def test_open_stream_missing_is_404(gateway):
    with pytest.raises(NotFoundError):
        gateway.open_stream("nope.pdf")


def test_open_stream_immediate_failure_is_500():
    gateway = DocumentGateway(FlakyStore(chunks_before_failure=0))
    with pytest.raises(InternalError) as exc:
        gateway.open_stream("a.pdf")
    assert exc.value.message == "Error streaming file"


def test_stream_failure_mid_transfer_ends_stream():
    store = FlakyStore(chunks_before_failure=3)
    gateway = DocumentGateway(store, chunk_size=10)

    stream = gateway.open_stream("a.pdf")
    received = list(stream.chunks)

    assert received == [b"y" * 10] * 3
    assert store.closed


def test_stream_closed_when_consumer_stops_early():
    store = FlakyStore(chunks_before_failure=100)
    stream = DocumentGateway(store, chunk_size=10).open_stream("a.pdf")

    next(stream.chunks)
    stream.chunks.close()

    assert store.closed


# ═══════════════════════════════════════════════════════════
# Upload
# ═══════════════════════════════════════════════════════════


def test_upload_strips_traversal(gateway, blob_store):
    stored = gateway.upload("../evil.pdf", PDF, "application/pdf")
    assert stored.filename == "evil.pdf"
    assert blob_store.exists("evil.pdf")
    assert blob_store.get_metadata("evil.pdf").content_type == "application/pdf"


def test_upload_duplicate_is_409(gateway):
    gateway.upload("a.pdf", PDF, "application/pdf")
    with pytest.raises(ConflictError) as exc:
        gateway.upload("a.pdf", PDF, "application/pdf")
    assert exc.value.message == "File with this name already exists"


def test_upload_rejects_non_pdf(gateway):
    with pytest.raises(InvalidInputError) as exc:
        gateway.upload("a.txt", b"hello", "text/plain")
    assert exc.value.message == "Only PDF files are allowed"


def test_upload_rejects_oversize(blob_store):
    gateway = DocumentGateway(blob_store, max_upload_bytes=50 * 1024 * 1024)
    with pytest.raises(InvalidInputError) as exc:
        gateway.upload("big.pdf", b"0" * (50 * 1024 * 1024 + 1), "application/pdf")
    assert exc.value.message == "File size exceeds 50MB limit"


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


def test_delete_existing(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")
    assert gateway.delete("a.pdf") == "a.pdf"
    assert not blob_store.exists("a.pdf")


def test_delete_missing_is_404(gateway):
    with pytest.raises(NotFoundError):
        gateway.delete("missing.pdf")


def test_delete_many_partitions(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")

    report = gateway.delete_many(["a.pdf", "missing.pdf"])

    assert report.deleted == ["a.pdf"]
    assert report.not_found == ["missing.pdf"]
    assert report.errors == []


def test_delete_many_reports_sanitized_names(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")

    report = gateway.delete_many(["../a.pdf", "../../gone.pdf"])

    assert report.deleted == ["a.pdf"]
    assert report.not_found == ["gone.pdf"]


def test_delete_many_collects_errors_and_continues():
    gateway = DocumentGateway(FlakyStore(delete_error="access denied"))

    report = gateway.delete_many(["boom.pdf", "ok.pdf", "missing.pdf", ".."])

    assert report.deleted == ["ok.pdf"]
    assert report.not_found == ["missing.pdf"]
    assert [(e.name, e.reason) for e in report.errors] == [
        ("boom.pdf", "access denied"),
        ("..", "Filename is required"),
    ]


@pytest.mark.parametrize("names", [[], None, "a.pdf", {"a.pdf": 1}])
def test_delete_many_requires_non_empty_list(gateway, names):
    with pytest.raises(InvalidInputError) as exc:
        gateway.delete_many(names)
    assert exc.value.message == "Filenames array is required and must not be empty"


def test_delete_many_store_race_counts_as_not_found():
    class RacingStore(FlakyStore):
        def delete(self, name):
            raise BlobNotFoundError(name)

    report = DocumentGateway(RacingStore()).delete_many(["a.pdf"])
    assert report.not_found == ["a.pdf"]
    assert report.deleted == []


def test_delete_many_non_string_names_become_errors(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")

    report = gateway.delete_many(["a.pdf", 1, None])

    assert report.deleted == ["a.pdf"]
    assert [(e.name, e.reason) for e in report.errors] == [
        ("1", "Filename is required"),
        ("None", "Filename is required"),
    ]


def test_sidecar_names_are_not_documents(gateway, blob_store):
    blob_store.write("a.pdf", PDF, "application/pdf")

    with pytest.raises(InvalidInputError) as exc:
        gateway.upload("a.pdf.meta.json", PDF, "application/pdf")
    assert exc.value.message == "Invalid filename"
    with pytest.raises(NotFoundError):
        gateway.delete("a.pdf.meta.json")
    assert blob_store.exists("a.pdf")
