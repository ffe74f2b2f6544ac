"""S3 blob store (boto3).

Works against AWS S3 and S3-compatible servers (MinIO, R2, GCS interop)
through `endpoint_url`. boto3 is synchronous; the document routes are
plain `def` handlers, so FastAPI runs these calls in its threadpool.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from reviewdesk.storage.base import (
    DEFAULT_CHUNK_SIZE,
    BlobMetadata,
    BlobNotFoundError,
    BlobReference,
    StorageError,
)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code")) in _NOT_FOUND_CODES


class S3BlobStore:
    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "",
        client: Optional[Any] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> None:
        self._bucket = bucket
        self._prefix = prefix.strip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or None,
            config=Config(signature_version="s3v4"),
        )

    def _key(self, name: str) -> str:
        name = name.lstrip("/")
        if self._prefix:
            return f"{self._prefix}/{name}"
        return name

    def _name(self, key: str) -> str:
        if self._prefix and key.startswith(self._prefix + "/"):
            return key[len(self._prefix) + 1:]
        return key

    def _head(self, name: str) -> dict:
        try:
            return self._client.head_object(Bucket=self._bucket, Key=self._key(name))
        except ClientError as exc:
            if _is_not_found(exc):
                raise BlobNotFoundError(name) from exc
            raise StorageError(f"Failed to read metadata for {name}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to read metadata for {name}") from exc

    def exists(self, name: str) -> bool:
        try:
            self._head(name)
        except BlobNotFoundError:
            return False
        return True

    def get_metadata(self, name: str) -> BlobMetadata:
        head = self._head(name)
        return BlobMetadata(
            content_type=head.get("ContentType") or "application/octet-stream",
            size=int(head.get("ContentLength", 0)),
        )

    def get_signed_url(self, name: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": self._key(name)},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to sign URL for {name}") from exc

    def open_read_stream(
        self, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Iterator[bytes]:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key(name))
        except ClientError as exc:
            if _is_not_found(exc):
                raise BlobNotFoundError(name) from exc
            raise StorageError(f"Failed to open {name}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to open {name}") from exc
        return self._iter_body(response["Body"], chunk_size)

    @staticmethod
    def _iter_body(body: Any, chunk_size: int) -> Iterator[bytes]:
        try:
            yield from body.iter_chunks(chunk_size)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Read failed mid-stream") from exc
        finally:
            body.close()

    def write(self, name: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=self._key(name),
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to write {name}") from exc

    def delete(self, name: str) -> None:
        # S3 deletes are idempotent, so existence is checked first
        self._head(name)
        try:
            self._client.delete_object(Bucket=self._bucket, Key=self._key(name))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to delete {name}") from exc

    def list(self, prefix: str = "") -> list[BlobReference]:
        refs: list[BlobReference] = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._key(prefix)):
                for obj in page.get("Contents", []):
                    refs.append(
                        BlobReference(
                            name=self._name(obj["Key"]),
                            size=int(obj.get("Size", 0)),
                            last_modified=obj["LastModified"],
                        )
                    )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to list documents") from exc
        return refs
