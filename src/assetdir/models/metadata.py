"""
User metadata models and the metadata update payload.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict


class UserMetadataUpdateMode(str, Enum):
    """How a metadata update treats existing user metadata entries."""

    CREATE_OR_UPDATE = "update"
    REPLACE_ALL = "replace"


class UserMetadataValue(BaseModel):
    """A user-defined metadata value attached to an asset."""

    model_config = ConfigDict(frozen=True)

    value: str = ""
    include_in_response_header: bool = False

    @classmethod
    def coerce(cls, value: UserMetadataValue | str) -> UserMetadataValue:
        """Accept a plain string wherever a metadata value is expected."""
        if isinstance(value, UserMetadataValue):
            return value
        return cls(value=value)

    def to_wire(self) -> str | dict[str, str | bool]:
        if self.include_in_response_header:
            return {"value": self.value, "includeInResponseHeader": True}
        return self.value

    def __str__(self) -> str:
        return self.value


def serialize_metadata_update(
    content_type: str | None = None,
    user_metadata: Mapping[str, UserMetadataValue | str] | None = None,
    mode: UserMetadataUpdateMode = UserMetadataUpdateMode.CREATE_OR_UPDATE,
) -> bytes:
    """
    Encode a metadata update request body.

    Args:
        content_type: New content type, omitted when None.
        user_metadata: New user metadata entries, omitted when None.
        mode: Whether entries are merged with or replace existing ones.

    Returns:
        UTF-8 JSON body.

    Example:
        >>> serialize_metadata_update("text/plain")
        b'{"type": "text/plain"}'
    """
    body: dict[str, object] = {}
    if content_type is not None:
        body["type"] = content_type

    if user_metadata is not None:
        body["userMetadataUpdateMode"] = UserMetadataUpdateMode(mode).value
        body["userMetadata"] = {
            key: UserMetadataValue.coerce(value).to_wire()
            for key, value in user_metadata.items()
        }

    return json.dumps(body).encode("utf-8")


__all__ = [
    "UserMetadataUpdateMode",
    "UserMetadataValue",
    "serialize_metadata_update",
]
