"""Filesystem-backed blob store for local development and tests.

Blobs live as files under a base directory. Content types are kept in a
`.meta.json` sidecar next to each blob, so names with that suffix are
refused. Signed URLs are plain file:// URIs, which is only meaningful
on the same machine.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from reviewdesk.storage.base import (
    DEFAULT_CHUNK_SIZE,
    BlobMetadata,
    BlobNotFoundError,
    BlobReference,
    InvalidBlobNameError,
)

_META_SUFFIX = ".meta.json"
_DEFAULT_CONTENT_TYPE = "application/octet-stream"


class LocalBlobStore:
    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir.expanduser().resolve()
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, name: str) -> Path:
        if name.endswith(_META_SUFFIX):
            raise InvalidBlobNameError(f"Reserved blob name: {name}")
        relative = name.lstrip("/")
        candidate = (self._base_dir / relative).resolve()
        try:
            candidate.relative_to(self._base_dir)
        except ValueError as exc:
            raise InvalidBlobNameError(f"Unsafe blob path: {name}") from exc
        return candidate

    def _meta_path(self, path: Path) -> Path:
        return path.with_name(path.name + _META_SUFFIX)

    def _existing(self, name: str) -> Path:
        path = self._path_for(name)
        if not path.is_file():
            raise BlobNotFoundError(name)
        return path

    def exists(self, name: str) -> bool:
        return self._path_for(name).is_file()

    def get_metadata(self, name: str) -> BlobMetadata:
        path = self._existing(name)
        content_type = _DEFAULT_CONTENT_TYPE
        meta_path = self._meta_path(path)
        if meta_path.is_file():
            content_type = json.loads(meta_path.read_text()).get(
                "content_type", _DEFAULT_CONTENT_TYPE
            )
        return BlobMetadata(content_type=content_type, size=path.stat().st_size)

    def get_signed_url(self, name: str, expires_in: int) -> str:
        return self._existing(name).as_uri()

    def open_read_stream(
        self, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Iterator[bytes]:
        path = self._existing(name)
        return self._iter_file(path, chunk_size)

    @staticmethod
    def _iter_file(path: Path, chunk_size: int) -> Iterator[bytes]:
        with path.open("rb") as fh:
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def write(self, name: str, data: bytes, content_type: str) -> None:
        path = self._path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self._meta_path(path).write_text(json.dumps({"content_type": content_type}))

    def delete(self, name: str) -> None:
        path = self._existing(name)
        path.unlink()
        self._meta_path(path).unlink(missing_ok=True)

    def list(self, prefix: str = "") -> list[BlobReference]:
        refs: list[BlobReference] = []
        for path in sorted(self._base_dir.rglob("*")):
            if not path.is_file() or path.name.endswith(_META_SUFFIX):
                continue
            name = path.relative_to(self._base_dir).as_posix()
            if not name.startswith(prefix):
                continue
            stat = path.stat()
            refs.append(
                BlobReference(
                    name=name,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return refs
