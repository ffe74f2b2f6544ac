"""Blob store contract.

Learn: The object store is an external collaborator. Everything the
document gateway needs from it fits in this small protocol, so the S3
backend and the local-filesystem backend are interchangeable (and tests
run against the local one).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Protocol

DEFAULT_CHUNK_SIZE = 64 * 1024


class StorageError(Exception):
    """Raised when the backing store fails."""


class BlobNotFoundError(StorageError):
    """Raised when a named blob does not exist."""


class InvalidBlobNameError(StorageError):
    """Raised when a name cannot be stored by this backend."""


@dataclass(frozen=True, slots=True)
class BlobReference:
    name: str
    size: int
    last_modified: datetime


@dataclass(frozen=True, slots=True)
class BlobMetadata:
    content_type: str
    size: int


class BlobStore(Protocol):
    def exists(self, name: str) -> bool: ...

    def get_metadata(self, name: str) -> BlobMetadata: ...

    def get_signed_url(self, name: str, expires_in: int) -> str: ...

    def open_read_stream(
        self, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Iterator[bytes]: ...

    def write(self, name: str, data: bytes, content_type: str) -> None: ...

    def delete(self, name: str) -> None: ...

    def list(self, prefix: str = "") -> list[BlobReference]: ...
