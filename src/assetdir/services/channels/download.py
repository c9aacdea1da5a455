"""
Sequential download stream over a single streamed GET.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

import httpx

from assetdir.exceptions import ChannelClosedError
from assetdir.services._sync_wrapper import sync_twin
from assetdir.transport.http import HttpTransport, error_from_transport
from assetdir.transport.paths import content_url


@sync_twin
class AsyncDownloadStream:
    """
    Read-only stream of an asset's content, front to back.

    Holds one open response until closed.
    """

    def __init__(
        self,
        stack: AsyncExitStack,
        response: httpx.Response,
        path: str,
        chunk_size: int,
    ) -> None:
        self._stack = stack
        self._response = response
        self._path = path
        self._chunks = response.aiter_bytes(chunk_size)
        self._pending = b""
        self._eof = False
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def length(self) -> int | None:
        """Content-Length reported by the server, if any."""
        value = self._response.headers.get("content-length")
        return int(value) if value is not None else None

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    async def _next_chunk(self) -> bytes:
        if self._pending:
            chunk, self._pending = self._pending, b""
            return chunk
        if self._eof:
            return b""
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            self._eof = True
            return b""
        except httpx.TransportError as e:
            raise error_from_transport(e) from e

    async def read(self, size: int = -1) -> bytes:
        """Read up to size bytes; everything left when size is negative."""
        if self._closed:
            raise ChannelClosedError()
        parts: list[bytes] = []
        remaining = size
        while size < 0 or remaining > 0:
            chunk = await self._next_chunk()
            if not chunk:
                break
            if size >= 0 and len(chunk) > remaining:
                chunk, self._pending = chunk[:remaining], chunk[remaining:]
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the remaining content chunk by chunk."""
        if self._closed:
            raise ChannelClosedError()
        while chunk := await self._next_chunk():
            yield chunk

    async def close(self) -> None:
        """Release the response."""
        if self._closed:
            return
        self._closed = True
        await self._stack.aclose()

    async def __aenter__(self) -> AsyncDownloadStream:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<AsyncDownloadStream path={self._path!r}>"


async def open_download_stream(
    transport: HttpTransport,
    path: str,
    chunk_size: int,
) -> AsyncDownloadStream:
    """Start a GET of path's content and return it as a stream."""
    stack = AsyncExitStack()
    try:
        response = await stack.enter_async_context(transport.stream("GET", content_url(path)))
    except BaseException:
        await stack.aclose()
        raise
    return AsyncDownloadStream(stack, response, path, chunk_size)


DownloadStream = AsyncDownloadStream._sync_class

__all__ = ["AsyncDownloadStream", "DownloadStream", "open_download_stream"]
