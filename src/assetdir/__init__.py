"""
Asset directory client SDK.

Async-first client for ProGet-style asset directories with a generated
blocking twin:

    from assetdir import AssetDirectoryClient

    with AssetDirectoryClient("https://proget.local/endpoints/assets", api_key="k") as client:
        with client.upload_multipart_file("iso/big.iso", total_size=size) as channel:
            for chunk in chunks:
                channel.write(chunk)
"""

from assetdir.client import AssetDirectoryClient, AsyncAssetDirectoryClient
from assetdir.config import (
    AssetDirSettings,
    configure_settings,
    get_settings,
    reset_settings,
)
from assetdir.exceptions import (
    AssetDirectoryError,
    ChannelClosedError,
    ContractViolationError,
    IncompleteUploadError,
    InvalidResponseError,
    ItemNotFoundError,
    TransferError,
    UploadSizeExceededError,
)
from assetdir.logging import get_logger, setup_logging
from assetdir.models import (
    AssetDirectoryItem,
    AssetHashAlgorithm,
    ExtendedAssetDirectoryItem,
    UserMetadataUpdateMode,
    UserMetadataValue,
)
from assetdir.services.channels import (
    AsyncDownloadStream,
    AsyncMultipartUploadChannel,
    AsyncRandomAccessReader,
    AsyncUploadChannel,
    DownloadStream,
    MultipartUploadChannel,
    RandomAccessReader,
    UploadChannel,
    UploadState,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Clients
    "AsyncAssetDirectoryClient",
    "AssetDirectoryClient",
    # Config
    "AssetDirSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Models
    "AssetDirectoryItem",
    "ExtendedAssetDirectoryItem",
    "AssetHashAlgorithm",
    "UserMetadataValue",
    "UserMetadataUpdateMode",
    # Channels
    "AsyncUploadChannel",
    "UploadChannel",
    "AsyncMultipartUploadChannel",
    "MultipartUploadChannel",
    "AsyncRandomAccessReader",
    "RandomAccessReader",
    "AsyncDownloadStream",
    "DownloadStream",
    "UploadState",
    # Exceptions
    "AssetDirectoryError",
    "TransferError",
    "ItemNotFoundError",
    "InvalidResponseError",
    "ContractViolationError",
    "UploadSizeExceededError",
    "IncompleteUploadError",
    "ChannelClosedError",
]
