"""Document storage backends.

get_blob_store() is the FastAPI dependency the document routes use; it
builds the backend named by REVIEWDESK_STORAGE_BACKEND once per process.
"""

from functools import lru_cache
from pathlib import Path

from reviewdesk.config import Settings, settings
from reviewdesk.storage.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobReference,
    BlobStore,
    InvalidBlobNameError,
    StorageError,
)


def build_blob_store(config: Settings) -> BlobStore:
    """Construct the configured blob store backend."""
    if config.storage_backend == "s3":
        from reviewdesk.storage.s3 import S3BlobStore

        return S3BlobStore(
            config.storage_bucket,
            prefix=config.storage_prefix,
            region=config.storage_region,
            endpoint_url=config.storage_endpoint_url,
        )

    from reviewdesk.storage.local import LocalBlobStore

    return LocalBlobStore(Path(config.local_storage_dir))


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return build_blob_store(settings)


__all__ = [
    "BlobMetadata",
    "BlobNotFoundError",
    "BlobReference",
    "BlobStore",
    "InvalidBlobNameError",
    "StorageError",
    "build_blob_store",
    "get_blob_store",
]
