"""
Random-access download channel.

Every read issues one ranged GET for exactly the bytes it can return, so
nothing is cached or prefetched and reads survive dropped connections.
Read in large blocks, or use the sequential download stream, when
throughput matters.
"""

from __future__ import annotations

import io
from typing import Any

from assetdir.exceptions import ChannelClosedError
from assetdir.logging import get_logger
from assetdir.models.items import AssetDirectoryItem
from assetdir.services._sync_wrapper import sync_twin
from assetdir.transport.http import HttpTransport
from assetdir.transport.paths import content_url

logger = get_logger(__name__)


def range_header(start: int, count: int) -> str:
    """Range header value for count bytes at start (end inclusive)."""
    return f"bytes={start}-{start + count - 1}"


@sync_twin
class AsyncRandomAccessReader:
    """
    Seekable, read-only view of a remote file of fixed length.

    seek() never does I/O. A read at or past the end returns no data
    rather than raising. On failure the position is left unchanged so the
    same range can be retried. Not safe for concurrent use.

    Example:
        >>> reader = await client.open_random_access_file("images/disk.img")
        >>> reader.seek(-512, io.SEEK_END)
        >>> tail = await reader.read(512)
    """

    def __init__(self, transport: HttpTransport, item: AssetDirectoryItem) -> None:
        self._transport = transport
        self._item = item
        self._url = content_url(item.full_name)
        self._length = item.size or 0
        self._position = 0
        self._closed = False

    @property
    def item(self) -> AssetDirectoryItem:
        return self._item

    @property
    def length(self) -> int:
        return self._length

    @property
    def position(self) -> int:
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """
        Move the read position.

        Args:
            offset: Offset relative to whence.
            whence: io.SEEK_SET, io.SEEK_CUR or io.SEEK_END.

        Returns:
            The new absolute position. Positions past the end are allowed.

        Raises:
            ValueError: Unknown whence or a negative resulting position.
        """
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._length + offset
        else:
            raise ValueError(f"Invalid whence ({whence!r}).")

        if position < 0:
            raise ValueError(f"Negative seek position {position}.")
        self._position = position
        return position

    async def readinto(self, buffer: Any) -> int:
        """
        Read into a writable buffer with one ranged request.

        Returns:
            Number of bytes copied; 0 at end of file (no request is made).

        Raises:
            TransferError: The ranged request failed; position is unchanged.
        """
        if self._closed:
            raise ChannelClosedError()
        view = memoryview(buffer).cast("B")
        if view.readonly:
            raise TypeError("readinto() requires a writable buffer.")

        to_read = min(view.nbytes, self._length - self._position)
        if to_read <= 0:
            return 0

        start = self._position
        logger.debug(f"GET {self._url} range={start}+{to_read}")
        copied = 0
        async with self._transport.stream(
            "GET", self._url, headers={"Range": range_header(start, to_read)}
        ) as response:
            # A 200 means the server ignored the range and sent the whole file.
            skip = start if response.status_code == 200 else 0
            async for chunk in response.aiter_bytes():
                if skip:
                    if len(chunk) <= skip:
                        skip -= len(chunk)
                        continue
                    chunk = chunk[skip:]
                    skip = 0
                count = min(len(chunk), to_read - copied)
                view[copied:copied + count] = chunk[:count]
                copied += count
                if copied >= to_read:
                    break

        self._position += copied
        return copied

    async def read(self, size: int = -1) -> bytes:
        """Read up to size bytes (to end of file when negative)."""
        available = max(self._length - self._position, 0)
        size = available if size is None or size < 0 else min(size, available)
        buffer = bytearray(size)
        count = await self.readinto(buffer)
        del buffer[count:]
        return bytes(buffer)

    async def close(self) -> None:
        """Mark the reader closed. No connection is held between reads."""
        self._closed = True

    async def __aenter__(self) -> AsyncRandomAccessReader:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"<AsyncRandomAccessReader path={self._item.full_name!r} "
            f"position={self._position}/{self._length}>"
        )


RandomAccessReader = AsyncRandomAccessReader._sync_class

__all__ = ["AsyncRandomAccessReader", "RandomAccessReader", "range_header"]
