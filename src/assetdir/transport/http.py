"""
HTTP request factory for the asset directory API.

Owns a single httpx.AsyncClient bound to the endpoint URL and translates
httpx failures into TransferError.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from assetdir.exceptions import ItemNotFoundError, TransferError
from assetdir.logging import get_logger

logger = get_logger(__name__)

API_KEY_HEADER = "X-ProGet-ApiKey"


def _is_plain_text(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "text/plain"


def error_message(response: httpx.Response) -> str:
    """Message for a failed response: the text/plain body, else the status line."""
    message = ""
    if _is_plain_text(response):
        message = response.text.strip()
    if not message:
        message = f"{response.status_code} {response.reason_phrase}".strip()
    return message


def error_from_response(response: httpx.Response) -> TransferError:
    """Build the TransferError for a non-success response whose body was read."""
    message = error_message(response)
    if response.status_code == 404:
        return ItemNotFoundError(message)
    return TransferError(message, status_code=response.status_code)


def error_from_transport(exc: httpx.TransportError) -> TransferError:
    """Build the TransferError for a failure where no response was obtained."""
    message = str(exc) or type(exc).__name__
    return TransferError(f"Transport error: {message}", cause=exc)


class HttpTransport:
    """
    Request factory bound to one asset directory endpoint.

    Example:
        >>> transport = HttpTransport("https://proget.local/endpoints/assets", api_key="k")
        >>> response = await transport.request("GET", "metadata/app.zip")
        >>> await transport.close()
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint_url or not endpoint_url.strip():
            raise ValueError("Endpoint URL is required.")

        self._endpoint_url = endpoint_url if endpoint_url.endswith("/") else endpoint_url + "/"

        headers: dict[str, str] = {}
        if api_key:
            headers[API_KEY_HEADER] = api_key

        auth = httpx.BasicAuth(username, password or "") if username else None

        self._client = httpx.AsyncClient(
            base_url=self._endpoint_url,
            headers=headers,
            auth=auth,
            timeout=timeout if timeout is not None else httpx.Timeout(300.0, connect=10.0),
            transport=transport,
        )

    @property
    def endpoint_url(self) -> str:
        """Endpoint URL with a trailing slash."""
        return self._endpoint_url

    @property
    def client(self) -> httpx.AsyncClient:
        """Underlying httpx client."""
        return self._client

    def build_request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        content: Any = None,
    ) -> httpx.Request:
        """Build a request relative to the endpoint URL."""
        return self._client.build_request(
            method,
            url,
            params=params,
            headers=headers,
            content=content,
        )

    async def send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """
        Send a request and check its status.

        Raises:
            TransferError: On transport failure or a non-success status.
            ItemNotFoundError: When the server returns 404.
        """
        logger.debug(f"{request.method} {request.url}")
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.TransportError as e:
            raise error_from_transport(e) from e

        if not response.is_success:
            try:
                await response.aread()
            except httpx.TransportError as e:
                raise error_from_transport(e) from e
            finally:
                await response.aclose()
            raise error_from_response(response)

        return response

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        content: Any = None,
    ) -> httpx.Response:
        """Build, send and fully read a request."""
        request = self.build_request(method, url, params=params, headers=headers, content=content)
        return await self.send(request)

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a streamed response.

        Transport errors raised while the body is being iterated are
        translated as well.
        """
        request = self.build_request(method, url, params=params, headers=headers)
        response = await self.send(request, stream=True)
        try:
            yield response
        except httpx.TransportError as e:
            raise error_from_transport(e) from e
        finally:
            await response.aclose()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"<HttpTransport endpoint={self._endpoint_url!r}>"


__all__ = [
    "API_KEY_HEADER",
    "HttpTransport",
    "error_message",
    "error_from_response",
    "error_from_transport",
]
