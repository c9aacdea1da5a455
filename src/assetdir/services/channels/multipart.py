"""
Chunked multipart upload channel.

A payload of known total size is delivered as a sequence of POST requests
of at most part_size bytes each, all tagged with the same session id:

    POST content/{path}?multipart=upload&id=..&index=0&offset=0&totalSize=..&partSize=..&totalParts=..
    POST content/{path}?multipart=upload&id=..&index=1&offset=..&...
    ...
    POST content/{path}?multipart=complete&id=..

Parts are sent strictly in index order, each fully acknowledged before
the next is opened; the server reassembles them under the session id.
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
from assetdir.services.channels._models import MultipartSession, PartSpec, UploadState
from assetdir.transport.http import HttpTransport
from assetdir.transport.paths import content_url
from assetdir.transport.pipe import RequestBodyPipe

logger = get_logger(__name__)


@sync_twin
class AsyncMultipartUploadChannel:
    """
    Write-only sink that splits its input into fixed-size part requests.

    A single write() may fill and complete several parts. Once every
    declared byte has been acknowledged the channel is COMPLETING and
    close() sends the completion request. Any failure (including
    cancellation) while a part is in flight leaves the channel FAILED;
    parts already acknowledged stay on the server and the session is
    left incomplete.

    Intended for one caller; parts must never be sent concurrently.
    """

    def __init__(
        self,
        transport: HttpTransport,
        path: str,
        session: MultipartSession,
        content_type: str | None = None,
    ) -> None:
        self._transport = transport
        self._path = path
        self._url = content_url(path)
        self._session = session
        self._content_type = content_type
        self._state = UploadState.UPLOADING
        self._part: PartSpec | None = None
        self._pipe: RequestBodyPipe | None = None
        self._written_in_part = 0
        self._bytes_written = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def session(self) -> MultipartSession:
        return self._session

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def part_index(self) -> int:
        """Index of the part currently being written (total_parts once complete)."""
        if self._part is None:
            return self._session.total_parts
        return self._part.index

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def remaining(self) -> int:
        """Declared bytes not yet written."""
        return self._session.total_size - self._bytes_written

    @property
    def closed(self) -> bool:
        return self._state in (UploadState.CLOSED, UploadState.FAILED)

    def writable(self) -> bool:
        return self._state == UploadState.UPLOADING

    # -------------------------------------------------------------------------
    # Part sequencing
    # -------------------------------------------------------------------------

    def _open_part(self, index: int) -> None:
        """Open the request for part index, or switch to COMPLETING past the end."""
        part = self._session.part(index)
        self._part = part
        self._written_in_part = 0
        if part is None:
            self._pipe = None
            self._state = UploadState.COMPLETING
            logger.debug(f"All {self._session.total_parts} parts sent for session {self._session.id}")
            return

        self._pipe = RequestBodyPipe.start(
            self._transport,
            self._url,
            params=self._session.upload_params(part),
            # The server records the content type from the first part.
            content_type=self._content_type if index == 0 else None,
            content_length=part.length,
        )
        logger.debug(
            f"Opened part {part.index + 1}/{self._session.total_parts} "
            f"(offset={part.offset}, length={part.length}) for {self._path}"
        )

    async def _finish_part(self) -> None:
        assert self._pipe is not None and self._part is not None
        await self._pipe.finish()
        logger.debug(f"Part {self._part.index + 1}/{self._session.total_parts} acknowledged")
        self._open_part(self._part.index + 1)

    def _fail(self) -> None:
        self._state = UploadState.FAILED
        if self._pipe is not None:
            self._pipe.abort()
            self._pipe = None

    # -------------------------------------------------------------------------
    # Stream operations
    # -------------------------------------------------------------------------

    async def start(self) -> AsyncMultipartUploadChannel:
        """Open the first part request. Called once by the client."""
        if self._part is None and self._state == UploadState.UPLOADING:
            self._open_part(0)
        return self

    async def write(self, data: bytes | bytearray | memoryview) -> int:
        """
        Write data, completing and opening parts as they fill.

        Returns:
            Number of bytes written (always len(data)).

        Raises:
            UploadSizeExceededError: Data would go past the declared total size.
            ChannelClosedError: The channel is closed, failed or completing.
            TransferError: A part request failed; the channel is now FAILED.
        """
        if self._state in (UploadState.CLOSED, UploadState.FAILED):
            raise ChannelClosedError(f"Channel is {self._state.value}.")
        view = memoryview(data).cast("B")
        size = view.nbytes
        if size == 0:
            return 0
        if size > self.remaining:
            raise UploadSizeExceededError(size, self.remaining)

        try:
            while view.nbytes:
                assert self._pipe is not None and self._part is not None
                count = min(view.nbytes, self._part.length - self._written_in_part)
                await self._pipe.write(view[:count])
                view = view[count:]
                self._written_in_part += count
                self._bytes_written += count

                if self._written_in_part == self._part.length:
                    await self._finish_part()
        except BaseException as e:
            logger.warning(
                f"Multipart upload of {self._path} failed at part "
                f"{self.part_index + 1}/{self._session.total_parts}: {e!r}"
            )
            self._fail()
            raise

        return size

    async def close(self) -> None:
        """
        Finish the upload.

        Sends the completion request once all parts are acknowledged.
        Closing a FAILED or already closed channel does nothing.

        Raises:
            IncompleteUploadError: Fewer bytes were written than declared.
            TransferError: The completion request failed.
        """
        if self._state in (UploadState.CLOSED, UploadState.FAILED):
            self._state = UploadState.CLOSED
            return

        if self._state == UploadState.UPLOADING:
            self._fail()
            self._state = UploadState.CLOSED
            raise IncompleteUploadError(self._bytes_written, self._session.total_size)

        try:
            await self._transport.request(
                "POST", self._url, params=self._session.complete_params()
            )
        except BaseException:
            self._state = UploadState.FAILED
            raise
        self._state = UploadState.CLOSED
        logger.info(
            f"Completed multipart upload of {self._path} "
            f"({self._session.total_size:,} bytes, {self._session.total_parts} parts)"
        )

    async def abort(self) -> None:
        """Abandon the upload; the server-side session is left incomplete."""
        if self._state != UploadState.CLOSED:
            self._fail()
        self._state = UploadState.CLOSED

    async def __aenter__(self) -> AsyncMultipartUploadChannel:
        return self

    async def __aexit__(self, exc_type: Any, *args: Any) -> None:
        if exc_type is not None:
            await self.abort()
        else:
            await self.close()

    def __repr__(self) -> str:
        return (
            f"<AsyncMultipartUploadChannel path={self._path!r} session={self._session.id} "
            f"state={self._state.value} written={self._bytes_written}/{self._session.total_size}>"
        )


async def open_multipart_channel(
    transport: HttpTransport,
    path: str,
    total_size: int,
    part_size: int,
    content_type: str | None = None,
    session_id: str | None = None,
) -> AsyncMultipartUploadChannel:
    """Create a multipart session for path and open its first part."""
    session = (
        MultipartSession(id=session_id, total_size=total_size, part_size=part_size)
        if session_id
        else MultipartSession(total_size=total_size, part_size=part_size)
    )
    channel = AsyncMultipartUploadChannel(transport, path, session, content_type)
    return await channel.start()


MultipartUploadChannel = AsyncMultipartUploadChannel._sync_class

__all__ = [
    "AsyncMultipartUploadChannel",
    "MultipartUploadChannel",
    "open_multipart_channel",
]
