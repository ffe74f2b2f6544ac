"""Pydantic schemas for document listing, signed URLs and deletion."""

from datetime import datetime

from reviewdesk.schemas.base import ApiModel


class DocumentRead(ApiModel):
    name: str
    size: int
    last_modified: datetime


class SignedUrlRead(ApiModel):
    filename: str
    url: str
    expires_in: int
    expires_at: datetime


class UploadRead(ApiModel):
    filename: str
    size: int


class BulkDeleteFailureRead(ApiModel):
    name: str
    reason: str


class BulkDeleteRead(ApiModel):
    deleted: list[str]
    not_found: list[str]
    errors: list[BulkDeleteFailureRead]
