"""
Asset directory client.

AsyncAssetDirectoryClient is the implementation; AssetDirectoryClient is
its blocking twin, generated from it and running on a private event loop.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from assetdir.config import AssetDirSettings, get_settings
from assetdir.exceptions import AssetDirectoryError, InvalidResponseError, ItemNotFoundError
from assetdir.logging import get_logger
from assetdir.models.items import ExtendedAssetDirectoryItem, parse_item
from assetdir.models.metadata import (
    UserMetadataUpdateMode,
    UserMetadataValue,
    serialize_metadata_update,
)
from assetdir.services._sync_wrapper import sync_twin
from assetdir.services.channels.download import AsyncDownloadStream, open_download_stream
from assetdir.services.channels.multipart import (
    AsyncMultipartUploadChannel,
    open_multipart_channel,
)
from assetdir.services.channels.random_access import AsyncRandomAccessReader
from assetdir.services.channels.upload import AsyncUploadChannel, open_upload_channel
from assetdir.transport.http import HttpTransport
from assetdir.transport.paths import metadata_url, require_path

logger = get_logger(__name__)


def _secret(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "get_secret_value"):
        return value.get_secret_value()
    return value


@sync_twin
class AsyncAssetDirectoryClient:
    """
    Client for a ProGet-style asset directory.

    Example:
        >>> async with AsyncAssetDirectoryClient(
        ...     "https://proget.local/endpoints/assets", api_key="k"
        ... ) as client:
        ...     item = await client.get_item_metadata("releases/app.zip")
        ...     async with await client.upload_multipart_file(
        ...         "releases/big.iso", total_size=size
        ...     ) as channel:
        ...         while chunk := src.read(1 << 20):
        ...             await channel.write(chunk)

    Arguments left as None fall back to ASSETDIR_* settings.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        api_key: str | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        settings: AssetDirSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        endpoint_url = endpoint_url or settings.endpoint_url
        if not endpoint_url or not endpoint_url.strip():
            raise ValueError(
                "Endpoint URL required. Pass endpoint_url or set ASSETDIR_ENDPOINT_URL."
            )

        self._settings = settings
        self._part_size = settings.part_size
        self._download_chunk_size = settings.download_chunk_size
        self._http = HttpTransport(
            endpoint_url,
            api_key=api_key or _secret(settings.api_key) or None,
            username=username or settings.username,
            password=password if password is not None else _secret(settings.password),
            timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
            transport=transport,
        )

    @property
    def endpoint_url(self) -> str:
        """Endpoint URL (always ends with a slash)."""
        return self._http.endpoint_url

    @property
    def part_size(self) -> int:
        """Default multipart part size in bytes."""
        return self._part_size

    # =========================================================================
    # Metadata
    # =========================================================================

    async def get_item_metadata(self, path: str) -> ExtendedAssetDirectoryItem:
        """
        Get metadata for the asset at path.

        Raises:
            ItemNotFoundError: No such asset.
            TransferError: Any other failure.
        """
        path = require_path(path)
        response = await self._http.request("GET", metadata_url(path))
        return parse_item(response.content)

    async def try_get_item_metadata(self, path: str) -> ExtendedAssetDirectoryItem | None:
        """Like get_item_metadata, but returns None when the asset does not exist."""
        try:
            return await self.get_item_metadata(path)
        except ItemNotFoundError:
            return None

    async def update_item_metadata(
        self,
        path: str,
        content_type: str | None = None,
        user_metadata: Mapping[str, UserMetadataValue | str] | None = None,
        mode: UserMetadataUpdateMode = UserMetadataUpdateMode.CREATE_OR_UPDATE,
    ) -> None:
        """
        Update the content type and/or user metadata of an asset.

        Nothing is sent when both content_type and user_metadata are None.
        """
        path = require_path(path)
        if content_type is None and user_metadata is None:
            return

        await self._http.request(
            "POST",
            metadata_url(path),
            headers={"Content-Type": "application/json"},
            content=serialize_metadata_update(content_type, user_metadata, mode),
        )

    # =========================================================================
    # Uploads
    # =========================================================================

    async def upload_file(
        self,
        path: str,
        content_type: str | None = None,
        total_size: int | None = None,
    ) -> AsyncUploadChannel:
        """
        Open a single-request upload channel.

        Args:
            path: Asset path to write.
            content_type: Content type; the server decides when None.
            total_size: Exact number of bytes that will be written, if known.
        """
        path = require_path(path)
        logger.debug(f"Opening upload of {path} (size={total_size})")
        return open_upload_channel(self._http, path, content_type, total_size)

    async def upload_multipart_file(
        self,
        path: str,
        total_size: int,
        content_type: str | None = None,
        part_size: int | None = None,
    ) -> AsyncMultipartUploadChannel | AsyncUploadChannel:
        """
        Open an upload channel that sends at most part_size bytes per request.

        When total_size fits in one part a plain single-request channel is
        returned instead.

        Raises:
            ValueError: Negative total_size or non-positive part_size.
        """
        path = require_path(path)
        if total_size < 0:
            raise ValueError("total_size must not be negative.")
        part_size = self._part_size if part_size is None else part_size
        if part_size <= 0:
            raise ValueError("part_size must be positive.")

        if total_size <= part_size:
            return await self.upload_file(path, content_type, total_size)

        logger.debug(f"Opening multipart upload of {path} ({total_size:,} bytes, parts of {part_size:,})")
        return await open_multipart_channel(
            self._http, path, total_size, part_size, content_type
        )

    # =========================================================================
    # Downloads
    # =========================================================================

    async def download_file(self, path: str) -> AsyncDownloadStream:
        """Start a sequential download of the asset at path."""
        path = require_path(path)
        return await open_download_stream(self._http, path, self._download_chunk_size)

    async def open_random_access_file(self, path: str) -> AsyncRandomAccessReader:
        """
        Open an asset for random-access reads.

        Each read is a separate ranged request; read in large blocks.

        Raises:
            ItemNotFoundError: No such asset.
            AssetDirectoryError: The path is a directory.
        """
        item = await self.get_item_metadata(path)
        if item.directory:
            raise AssetDirectoryError("Cannot open remote directory as a file.")
        if item.size is None:
            raise InvalidResponseError(f"Server did not report a size for {item.full_name}.")
        return AsyncRandomAccessReader(self._http, item)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.close()

    async def __aenter__(self) -> AsyncAssetDirectoryClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<AsyncAssetDirectoryClient endpoint={self.endpoint_url!r}>"


AssetDirectoryClient = AsyncAssetDirectoryClient._sync_class

__all__ = ["AsyncAssetDirectoryClient", "AssetDirectoryClient"]
