"""
Push-style request bodies.

httpx pulls request bodies from an iterator. RequestBodyPipe turns that
around: the request is started as a task whose body iterator waits on a
one-slot queue, and each write() hands a chunk over and returns once the
transport has consumed it. Nothing beyond the chunk in flight is buffered.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable
from typing import Any, TypeVar

import httpx

from assetdir.exceptions import ChannelClosedError, TransferError
from assetdir.logging import get_logger
from assetdir.transport.http import HttpTransport

logger = get_logger(__name__)

T = TypeVar("T")

_END = None


class RequestBodyPipe:
    """
    One in-flight POST whose body is written incrementally.

    Not safe for concurrent use: one writer, one awaited operation at a time.

    Example:
        >>> pipe = RequestBodyPipe.start(transport, "content/a.bin", content_length=6)
        >>> await pipe.write(b"abc")
        >>> await pipe.write(b"def")
        >>> response = await pipe.finish()
    """

    def __init__(
        self,
        transport: HttpTransport,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        content_type: str | None = None,
        content_length: int | None = None,
    ) -> None:
        headers: dict[str, str] = {}
        if content_type:
            headers["Content-Type"] = content_type
        if content_length is not None:
            # An explicit length makes httpx drop chunked transfer encoding.
            headers["Content-Length"] = str(content_length)

        self._transport = transport
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=1)
        self._request = transport.build_request(
            "POST", url, params=params, headers=headers, content=self._body()
        )
        self._task: asyncio.Task[httpx.Response] | None = None
        self._finished = False

    @classmethod
    def start(
        cls,
        transport: HttpTransport,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        content_type: str | None = None,
        content_length: int | None = None,
    ) -> RequestBodyPipe:
        """Create the pipe and begin sending the request. Needs a running loop."""
        pipe = cls(
            transport,
            url,
            params=params,
            content_type=content_type,
            content_length=content_length,
        )
        pipe._task = asyncio.ensure_future(transport.send(pipe._request))
        return pipe

    @property
    def request(self) -> httpx.Request:
        return self._request

    @property
    def finished(self) -> bool:
        return self._finished

    async def _body(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            try:
                if chunk is _END:
                    return
                yield chunk
            finally:
                self._queue.task_done()

    async def _race(self, operation: Awaitable[T]) -> T:
        """Await operation unless the request ends first."""
        assert self._task is not None
        waiter = asyncio.ensure_future(operation)
        try:
            await asyncio.wait({waiter, self._task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            waiter.cancel()
            raise

        if waiter.done():
            return waiter.result()

        waiter.cancel()
        self._finished = True
        response = self._task.result()  # raises the translated failure, if any
        raise TransferError(
            f"Server responded before the request body was sent "
            f"({response.status_code}).",
            status_code=response.status_code,
        )

    async def write(self, data: bytes | bytearray | memoryview) -> None:
        """Send a chunk of the body, returning once the transport consumed it."""
        if self._finished:
            raise ChannelClosedError("Request body is already complete.")
        if not data:
            return
        await self._race(self._queue.put(bytes(data)))
        await self._race(self._queue.join())

    async def finish(self) -> httpx.Response:
        """End the body and wait for the (successful) response."""
        if self._finished:
            raise ChannelClosedError("Request body is already complete.")
        assert self._task is not None
        await self._race(self._queue.put(_END))
        self._finished = True
        return await self._task

    def abort(self) -> None:
        """Cancel the in-flight request without waiting for it."""
        self._finished = True
        if self._task is None:
            return
        if self._task.done():
            if not self._task.cancelled():
                # Mark any failure as retrieved; the caller already has the error.
                self._task.exception()
            return
        logger.debug(f"Aborting {self._request.method} {self._request.url}")
        self._task.cancel()


__all__ = ["RequestBodyPipe"]
