"""
Pytest configuration and fixtures for asset directory tests.

FakeAssetServer stands in for the server behind an httpx.MockTransport:
it stores uploaded content, reassembles multipart sessions, honours Range
headers and records every request it sees.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from collections.abc import Callable
from urllib.parse import unquote

import httpx
import pytest

from assetdir.client import AsyncAssetDirectoryClient
from assetdir.config import AssetDirSettings, reset_settings
from assetdir.transport.http import HttpTransport

ENDPOINT = "https://assets.test/endpoints/assets/"
BASE_PATH = "/endpoints/assets/"
CREATED = "2024-03-01T12:00:00Z"


def _not_found() -> httpx.Response:
    return httpx.Response(404, text="The requested item was not found.")


class FakeAssetServer:
    """In-memory asset directory speaking the content/metadata protocol."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.user_metadata: dict[str, dict] = {}
        self.directories: set[str] = set()
        self.sessions: dict[str, dict[int, bytes]] = {}
        self.requests: list[httpx.Request] = []
        self.metadata_updates: list[dict] = []
        self.ignore_range = False
        self.response_chunk_size: int | None = None
        self.fail: Callable[[httpx.Request], httpx.Response | None] | None = None

    # -------------------------------------------------------------------------
    # Setup helpers
    # -------------------------------------------------------------------------

    def add_file(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        user_metadata: dict | None = None,
    ) -> None:
        self.files[path] = content
        self.content_types[path] = content_type
        if user_metadata is not None:
            self.user_metadata[path] = user_metadata

    def add_directory(self, path: str) -> None:
        self.directories.add(path)

    def requests_to(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if self._route(r)[0] == prefix]

    # -------------------------------------------------------------------------
    # Handler
    # -------------------------------------------------------------------------

    @staticmethod
    def _route(request: httpx.Request) -> tuple[str, str]:
        path = unquote(request.url.path)
        assert path.startswith(BASE_PATH), path
        kind, _, item = path[len(BASE_PATH):].partition("/")
        return kind, item

    def _metadata(self, path: str) -> dict | None:
        parent, _, name = path.rpartition("/")
        if path in self.directories:
            return {"name": name, "parent": parent, "created": CREATED, "type": "dir"}
        if path not in self.files:
            return None
        content = self.files[path]
        data = {
            "name": name,
            "parent": parent,
            "created": CREATED,
            "size": len(content),
            "type": self.content_types.get(path),
            "md5": hashlib.md5(content).hexdigest(),
            "sha256": hashlib.sha256(content).hexdigest(),
        }
        if path in self.user_metadata:
            data["userMetadata"] = self.user_metadata[path]
        return data

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail is not None:
            response = self.fail(request)
            if response is not None:
                return response

        kind, path = self._route(request)
        if kind == "metadata":
            return self._handle_metadata(request, path)
        if kind == "content" and request.method == "GET":
            return self._handle_download(request, path)
        if kind == "content" and request.method == "POST":
            return self._handle_upload(request, path)
        return httpx.Response(405)

    def _handle_metadata(self, request: httpx.Request, path: str) -> httpx.Response:
        if request.method == "POST":
            if path not in self.files:
                return _not_found()
            update = json.loads(request.content)
            self.metadata_updates.append(update)
            if "type" in update:
                self.content_types[path] = update["type"]
            return httpx.Response(200)

        metadata = self._metadata(path)
        if metadata is None:
            return _not_found()
        return httpx.Response(200, json=metadata)

    def _handle_upload(self, request: httpx.Request, path: str) -> httpx.Response:
        params = request.url.params
        mode = params.get("multipart")
        if mode == "upload":
            parts = self.sessions.setdefault(params["id"], {})
            parts[int(params["index"])] = request.content
            if int(params["index"]) == 0 and "content-type" in request.headers:
                self.content_types[path] = request.headers["content-type"]
            return httpx.Response(200)
        if mode == "complete":
            parts = self.sessions.pop(params["id"], None)
            if parts is None:
                return httpx.Response(400, text="Unknown multipart session.")
            self.files[path] = b"".join(parts[i] for i in sorted(parts))
            return httpx.Response(200)

        self.files[path] = request.content
        if "content-type" in request.headers:
            self.content_types[path] = request.headers["content-type"]
        return httpx.Response(200)

    def _handle_download(self, request: httpx.Request, path: str) -> httpx.Response:
        if path not in self.files:
            return _not_found()
        content = self.files[path]
        status = 200
        range_value = request.headers.get("range")
        if range_value and not self.ignore_range:
            start, _, end = range_value.removeprefix("bytes=").partition("-")
            content = content[int(start):int(end) + 1]
            status = 206

        if self.response_chunk_size is None:
            return httpx.Response(status, content=content)

        chunk_size = self.response_chunk_size

        async def chunks():
            for i in range(0, len(content), chunk_size):
                yield content[i:i + chunk_size]

        return httpx.Response(status, content=chunks())


class StalledTransport(httpx.AsyncBaseTransport):
    """Transport that accepts a request but never reads its body or answers."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.cancelled = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        raise AssertionError("unreachable")


@pytest.fixture(autouse=True)
def _reset_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> AssetDirSettings:
    return AssetDirSettings(_env_file=None)


@pytest.fixture
def server() -> FakeAssetServer:
    return FakeAssetServer()


@pytest.fixture
def mock_transport(server: FakeAssetServer) -> httpx.MockTransport:
    return httpx.MockTransport(server.handler)


@pytest.fixture
async def http_transport(mock_transport: httpx.MockTransport):
    transport = HttpTransport(ENDPOINT, api_key="secret", transport=mock_transport)
    yield transport
    await transport.close()


@pytest.fixture
async def client(mock_transport: httpx.MockTransport, settings: AssetDirSettings):
    async with AsyncAssetDirectoryClient(
        ENDPOINT, api_key="secret", settings=settings, transport=mock_transport
    ) as c:
        yield c
