"""Pydantic models for asset directory metadata."""

from assetdir.models.items import (
    AssetDirectoryItem,
    AssetHashAlgorithm,
    ExtendedAssetDirectoryItem,
    parse_item,
    parse_item_list,
)
from assetdir.models.metadata import (
    UserMetadataUpdateMode,
    UserMetadataValue,
    serialize_metadata_update,
)

__all__ = [
    "AssetDirectoryItem",
    "AssetHashAlgorithm",
    "ExtendedAssetDirectoryItem",
    "UserMetadataUpdateMode",
    "UserMetadataValue",
    "parse_item",
    "parse_item_list",
    "serialize_metadata_update",
]
