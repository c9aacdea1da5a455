"""
Sequential upload channel: one POST whose body is written incrementally.
"""

from __future__ import annotations

from typing import Any

from assetdir.exceptions import (
    ChannelClosedError,
    IncompleteUploadError,
    UploadSizeExceededError,
)
from assetdir.logging import get_logger
from assetdir.services._sync_wrapper import sync_twin
from assetdir.transport.http import HttpTransport
from assetdir.transport.paths import content_url
from assetdir.transport.pipe import RequestBodyPipe

logger = get_logger(__name__)


@sync_twin
class AsyncUploadChannel:
    """
    Write-only sink for a single-request upload.

    Writes go straight to the open request body in call order. close()
    ends the body and waits for the server's answer. Intended for one
    caller; do not share an instance between tasks or threads.

    Example:
        >>> async with await client.upload_file("docs/readme.txt") as channel:
        ...     await channel.write(b"hello")
    """

    def __init__(self, pipe: RequestBodyPipe, path: str, total_size: int | None = None) -> None:
        self._pipe = pipe
        self._path = path
        self._total_size = total_size
        self._bytes_written = 0
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def total_size(self) -> int | None:
        """Declared size, or None for a chunked upload."""
        return self._total_size

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return not self._closed

    async def write(self, data: bytes | bytearray | memoryview) -> int:
        """
        Send data as the next part of the body.

        Returns:
            Number of bytes written (always len(data)).

        Raises:
            UploadSizeExceededError: Data would go past the declared size.
            TransferError: The request failed.
        """
        if self._closed:
            raise ChannelClosedError()
        size = memoryview(data).nbytes
        if self._total_size is not None and self._bytes_written + size > self._total_size:
            raise UploadSizeExceededError(size, self._total_size - self._bytes_written)

        try:
            await self._pipe.write(data)
        except BaseException as e:
            logger.warning(f"Upload of {self._path} failed after {self._bytes_written:,} bytes: {e!r}")
            await self.abort()
            raise
        self._bytes_written += size
        return size

    async def close(self) -> None:
        """Finish the request and raise if the server rejected it. Idempotent."""
        if self._closed:
            return
        if self._total_size is not None and self._bytes_written != self._total_size:
            await self.abort()
            raise IncompleteUploadError(self._bytes_written, self._total_size)

        self._closed = True
        try:
            await self._pipe.finish()
        except BaseException:
            self._pipe.abort()
            raise
        logger.debug(f"Uploaded {self._bytes_written:,} bytes to {self._path}")

    async def abort(self) -> None:
        """Drop the request without finishing it."""
        self._closed = True
        self._pipe.abort()

    async def __aenter__(self) -> AsyncUploadChannel:
        return self

    async def __aexit__(self, exc_type: Any, *args: Any) -> None:
        if exc_type is not None:
            await self.abort()
        else:
            await self.close()

    def __repr__(self) -> str:
        return f"<AsyncUploadChannel path={self._path!r} written={self._bytes_written}>"


def open_upload_channel(
    transport: HttpTransport,
    path: str,
    content_type: str | None = None,
    total_size: int | None = None,
) -> AsyncUploadChannel:
    """
    Start a single-request upload of path.

    With total_size the request carries Content-Length, otherwise the body
    is sent with chunked transfer encoding. Must be called from a running
    event loop.
    """
    if total_size is not None and total_size < 0:
        raise ValueError("total_size must not be negative.")
    pipe = RequestBodyPipe.start(
        transport,
        content_url(path),
        content_type=content_type,
        content_length=total_size,
    )
    return AsyncUploadChannel(pipe, path, total_size)


UploadChannel = AsyncUploadChannel._sync_class

__all__ = ["AsyncUploadChannel", "UploadChannel", "open_upload_channel"]
