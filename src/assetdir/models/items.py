"""
Asset item metadata models.

The server describes items as JSON objects::

    {
      "name": "app.zip",
      "parent": "releases/1.0",
      "created": "2024-01-01T00:00:00Z",
      "modified": "2024-01-02T00:00:00Z",
      "size": 1048576,
      "type": "application/zip",       # "dir" for directories
      "md5": "9e10...", "sha1": "...", "sha256": "...", "sha512": "...",
      "userMetadata": {"owner": "ci", "build": {"value": "42", "includeInResponseHeader": true}}
    }
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from assetdir.exceptions import InvalidResponseError
from assetdir.models.metadata import UserMetadataValue


class AssetHashAlgorithm(str, Enum):
    """Content hash algorithms reported by the server."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"


def _parse_hex(value: Any) -> bytes | None:
    if not value:
        return None
    if isinstance(value, bytes):
        return value
    if len(value) % 2 != 0:
        raise ValueError("hash string is not an even number of characters")
    return bytes.fromhex(value)


class AssetDirectoryItem(BaseModel):
    """
    Metadata for a file or folder in an asset directory.

    Immutable once built from a server response.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    created: datetime
    modified: datetime
    directory: bool = False
    size: int | None = None
    content_type: str | None = None
    md5: bytes | None = Field(default=None, repr=False)
    sha1: bytes | None = Field(default=None, repr=False)
    sha256: bytes | None = Field(default=None, repr=False)
    sha512: bytes | None = Field(default=None, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "full_name" in data:
            return data

        if "name" not in data:
            raise ValueError('missing "name" property')
        name = data["name"]
        parent = data.get("parent")
        created = data.get("created")

        result: dict[str, Any] = {
            "name": name,
            "full_name": f"{parent}/{name}" if parent else name,
            "created": created,
            "modified": data.get("modified") or created,
            "size": data.get("size"),
        }
        for algorithm in AssetHashAlgorithm:
            result[algorithm.value] = _parse_hex(data.get(algorithm.value))

        item_type = data.get("type")
        if item_type == "dir":
            result["directory"] = True
        else:
            result["content_type"] = item_type

        if "userMetadata" in data:
            result["user_metadata"] = {
                key: (
                    UserMetadataValue(
                        value=value.get("value") or "",
                        include_in_response_header=bool(value.get("includeInResponseHeader", False)),
                    )
                    if isinstance(value, dict)
                    else UserMetadataValue(value=value or "")
                )
                for key, value in (data["userMetadata"] or {}).items()
            }
        return result

    @property
    def length(self) -> int | None:
        """Size of the file in bytes (None for directories)."""
        return self.size

    def get_hash(self, algorithm: AssetHashAlgorithm | str) -> bytes | None:
        """Return the stored hash for the algorithm, or None when not reported."""
        return getattr(self, AssetHashAlgorithm(algorithm).value)

    def __str__(self) -> str:
        return self.name


class ExtendedAssetDirectoryItem(AssetDirectoryItem):
    """Item metadata including user-defined metadata entries."""

    user_metadata: dict[str, UserMetadataValue] = Field(default_factory=dict)

    def get_user_metadata(self, key: str) -> UserMetadataValue | None:
        """Case-insensitive lookup of a user metadata entry."""
        if key in self.user_metadata:
            return self.user_metadata[key]
        lowered = key.lower()
        for name, value in self.user_metadata.items():
            if name.lower() == lowered:
                return value
        return None


def _load_json(data: bytes | str) -> Any:
    try:
        return json.loads(data)
    except ValueError as e:
        raise InvalidResponseError(f"Malformed JSON from server: {e}", cause=e) from e


def parse_item(data: bytes | str) -> ExtendedAssetDirectoryItem:
    """Parse item metadata returned by ``GET metadata/{path}``."""
    try:
        return ExtendedAssetDirectoryItem.model_validate(_load_json(data))
    except ValidationError as e:
        raise InvalidResponseError(f"Invalid item metadata: {e}", cause=e) from e


def parse_item_list(data: bytes | str) -> list[AssetDirectoryItem]:
    """
    Parse a JSON array of items.

    Only the parser for list responses; the client exposes no listing call.
    """
    raw = _load_json(data)
    if not isinstance(raw, list):
        raise InvalidResponseError("Expected a JSON array of items.")
    try:
        return [AssetDirectoryItem.model_validate(entry) for entry in raw]
    except ValidationError as e:
        raise InvalidResponseError(f"Invalid item metadata: {e}", cause=e) from e


__all__ = [
    "AssetHashAlgorithm",
    "AssetDirectoryItem",
    "ExtendedAssetDirectoryItem",
    "parse_item",
    "parse_item_list",
]
