"""Shared schema base and the response envelope.

Learn: The web client speaks camelCase (registrationStatus, notFound, ...).
ApiModel generates camelCase aliases for every field and still accepts
snake_case on input, so Python code keeps snake_case names throughout.

Every successful response is wrapped the same way:
    {"success": true, "message": "...", "data": {...}}
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Build the success envelope, serializing models with camelCase keys."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = _dump(data)
    return body


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value
