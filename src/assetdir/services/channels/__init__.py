"""
Transfer channels.

Capability-scoped stream types, each with an async class and a generated
blocking twin:

- AsyncUploadChannel / UploadChannel: write-only, one request
- AsyncMultipartUploadChannel / MultipartUploadChannel: write-only, one request per part
- AsyncRandomAccessReader / RandomAccessReader: seekable read-only, one ranged request per read
- AsyncDownloadStream / DownloadStream: sequential read-only, one streamed request
"""

from assetdir.services.channels._models import (
    MultipartSession,
    PartSpec,
    UploadState,
    count_parts,
    plan_parts,
)
from assetdir.services.channels.download import (
    AsyncDownloadStream,
    DownloadStream,
    open_download_stream,
)
from assetdir.services.channels.multipart import (
    AsyncMultipartUploadChannel,
    MultipartUploadChannel,
    open_multipart_channel,
)
from assetdir.services.channels.random_access import (
    AsyncRandomAccessReader,
    RandomAccessReader,
)
from assetdir.services.channels.upload import (
    AsyncUploadChannel,
    UploadChannel,
    open_upload_channel,
)

__all__ = [
    "MultipartSession",
    "PartSpec",
    "UploadState",
    "count_parts",
    "plan_parts",
    "AsyncDownloadStream",
    "DownloadStream",
    "open_download_stream",
    "AsyncMultipartUploadChannel",
    "MultipartUploadChannel",
    "open_multipart_channel",
    "AsyncRandomAccessReader",
    "RandomAccessReader",
    "AsyncUploadChannel",
    "UploadChannel",
    "open_upload_channel",
]
