"""
Tests for the asset directory client (async and generated sync twin).
"""

from __future__ import annotations

import io
import json

import httpx
import pytest

from assetdir import (
    AssetDirectoryClient,
    AssetDirectoryError,
    AsyncAssetDirectoryClient,
    ItemNotFoundError,
    UserMetadataUpdateMode,
    UserMetadataValue,
)
from assetdir.config import AssetDirSettings, configure_settings
from assetdir.services.channels import (
    AsyncMultipartUploadChannel,
    AsyncUploadChannel,
    DownloadStream,
    MultipartUploadChannel,
    RandomAccessReader,
    UploadChannel,
    UploadState,
)
from assetdir.transport.http import API_KEY_HEADER

from .conftest import ENDPOINT


class TestClientConstruction:
    """Tests for client creation and settings fallback."""

    async def test_explicit_endpoint(self, client):
        assert client.endpoint_url == ENDPOINT
        assert "assets.test" in repr(client)

    async def test_endpoint_required(self, settings):
        with pytest.raises(ValueError):
            AsyncAssetDirectoryClient(settings=settings)

    async def test_settings_fallback(self, server):
        settings = configure_settings(
            _env_file=None,
            endpoint_url="https://assets.test/endpoints/assets",
            api_key="from-env",
            part_size=10,
        )
        async with AsyncAssetDirectoryClient(
            transport=httpx.MockTransport(server.handler)
        ) as client:
            assert client.endpoint_url == ENDPOINT
            assert client.part_size == settings.part_size == 10
            server.add_file("a.txt", b"x")
            await client.get_item_metadata("a.txt")
        assert server.requests[0].headers[API_KEY_HEADER] == "from-env"

    async def test_explicit_arguments_win(self, server):
        settings = AssetDirSettings(_env_file=None, api_key="from-env")
        server.add_file("a.txt", b"x")
        async with AsyncAssetDirectoryClient(
            ENDPOINT,
            api_key="explicit",
            settings=settings,
            transport=httpx.MockTransport(server.handler),
        ) as client:
            await client.get_item_metadata("a.txt")
        assert server.requests[0].headers[API_KEY_HEADER] == "explicit"


class TestMetadata:
    """Tests for metadata operations."""

    async def test_get_item_metadata(self, client, server):
        server.add_file("releases/1.0/app.zip", b"PK" * 10, "application/zip", {"owner": "ci"})
        item = await client.get_item_metadata("\\releases\\1.0\\app.zip")
        assert item.full_name == "releases/1.0/app.zip"
        assert item.size == 20
        assert item.content_type == "application/zip"
        assert item.get_user_metadata("OWNER").value == "ci"
        assert server.requests[0].url.path == "/endpoints/assets/metadata/releases/1.0/app.zip"

    async def test_get_missing_item(self, client):
        with pytest.raises(ItemNotFoundError):
            await client.get_item_metadata("missing.txt")

    async def test_try_get_missing_item(self, client):
        assert await client.try_get_item_metadata("missing.txt") is None

    async def test_try_get_propagates_other_errors(self, client, server):
        server.fail = lambda request: httpx.Response(500)
        with pytest.raises(AssetDirectoryError) as exc_info:
            await client.try_get_item_metadata("a.txt")
        assert exc_info.value.status_code == 500

    async def test_empty_path_rejected(self, client, server):
        with pytest.raises(ValueError):
            await client.get_item_metadata("/")
        assert server.requests == []

    async def test_update_item_metadata(self, client, server):
        server.add_file("a.txt", b"x")
        await client.update_item_metadata(
            "a.txt",
            content_type="text/plain",
            user_metadata={"owner": UserMetadataValue(value="qa", include_in_response_header=True)},
            mode=UserMetadataUpdateMode.REPLACE_ALL,
        )
        request = server.requests[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "type": "text/plain",
            "userMetadataUpdateMode": "replace",
            "userMetadata": {"owner": {"value": "qa", "includeInResponseHeader": True}},
        }
        assert server.content_types["a.txt"] == "text/plain"

    async def test_update_nothing_sends_nothing(self, client, server):
        await client.update_item_metadata("a.txt")
        assert server.requests == []


class TestUploads:
    """Tests for client upload entry points."""

    async def test_upload_file(self, client, server):
        async with await client.upload_file("a.txt", "text/plain", 5) as channel:
            assert isinstance(channel, AsyncUploadChannel)
            await channel.write(b"hello")
        assert server.files["a.txt"] == b"hello"

    async def test_multipart_falls_back_to_single_request(self, client, server):
        channel = await client.upload_multipart_file("a.bin", 5_000_000, "application/octet-stream")
        assert isinstance(channel, AsyncUploadChannel)
        await channel.write(b"\0" * 5_000_000)
        await channel.close()

        assert len(server.requests) == 1
        request = server.requests[0]
        assert "id" not in request.url.params
        assert "multipart" not in request.url.params
        assert request.headers["content-length"] == "5000000"

    async def test_multipart_upload(self, client, server):
        channel = await client.upload_multipart_file("a.bin", 25, part_size=10)
        assert isinstance(channel, AsyncMultipartUploadChannel)
        await channel.write(b"x" * 25)
        await channel.close()
        assert server.files["a.bin"] == b"x" * 25

    async def test_multipart_uses_default_part_size(self, client):
        channel = await client.upload_multipart_file("a.bin", 12_000_000)
        assert isinstance(channel, AsyncMultipartUploadChannel)
        assert channel.session.part_size == 5 * 1024 * 1024
        await channel.abort()

    async def test_multipart_argument_validation(self, client):
        with pytest.raises(ValueError):
            await client.upload_multipart_file("a.bin", -1)
        with pytest.raises(ValueError):
            await client.upload_multipart_file("a.bin", 10, part_size=0)


class TestDownloads:
    """Tests for client download entry points."""

    async def test_download_file(self, client, server):
        server.add_file("a.bin", b"0123456789" * 100)
        async with await client.download_file("a.bin") as stream:
            assert await stream.read() == b"0123456789" * 100

    async def test_open_random_access_file(self, client, server):
        server.add_file("images/disk.img", bytes(range(100)))
        async with await client.open_random_access_file("images/disk.img") as reader:
            assert reader.length == 100
            reader.seek(-10, io.SEEK_END)
            assert await reader.read(50) == bytes(range(90, 100))

    async def test_open_random_access_directory(self, client, server):
        server.add_directory("images")
        with pytest.raises(AssetDirectoryError):
            await client.open_random_access_file("images")

    async def test_open_random_access_missing(self, client):
        with pytest.raises(ItemNotFoundError):
            await client.open_random_access_file("missing.img")


class TestSyncClient:
    """Tests for the generated blocking client."""

    def _client(self, server, settings) -> AssetDirectoryClient:
        return AssetDirectoryClient(
            ENDPOINT,
            api_key="secret",
            settings=settings,
            transport=httpx.MockTransport(server.handler),
        )

    def test_metadata(self, server, settings):
        server.add_file("a.txt", b"abc")
        with self._client(server, settings) as client:
            assert client.endpoint_url == ENDPOINT
            assert client.get_item_metadata("a.txt").size == 3
            assert client.try_get_item_metadata("b.txt") is None

    def test_upload_channel(self, server, settings):
        with self._client(server, settings) as client:
            with client.upload_file("a.txt", total_size=6) as channel:
                assert isinstance(channel, UploadChannel)
                channel.write(b"abc")
                channel.write(b"def")
                assert channel.bytes_written == 6
        assert server.files["a.txt"] == b"abcdef"

    def test_multipart_channel(self, server, settings):
        with self._client(server, settings) as client:
            with client.upload_multipart_file("a.bin", 25, part_size=10) as channel:
                assert isinstance(channel, MultipartUploadChannel)
                for _ in range(5):
                    channel.write(b"12345")
                assert channel.state == UploadState.COMPLETING
            assert channel.state == UploadState.CLOSED
        assert server.files["a.bin"] == b"12345" * 5

    def test_multipart_error_aborts(self, server, settings):
        with self._client(server, settings) as client:
            with pytest.raises(RuntimeError):
                with client.upload_multipart_file("a.bin", 25, part_size=10) as channel:
                    channel.write(b"x" * 12)
                    raise RuntimeError("source failed")
            assert channel.closed
        assert "a.bin" not in server.files

    def test_download_iteration(self, server, settings):
        server.add_file("a.bin", b"z" * 200_000)
        with self._client(server, settings) as client:
            with client.download_file("a.bin") as stream:
                assert isinstance(stream, DownloadStream)
                data = b"".join(stream)
        assert data == b"z" * 200_000

    def test_random_access(self, server, settings):
        server.add_file("a.bin", bytes(range(100)))
        with self._client(server, settings) as client:
            with client.open_random_access_file("a.bin") as reader:
                assert isinstance(reader, RandomAccessReader)
                reader.seek(40)
                assert reader.read(40) == bytes(range(40, 80))
                assert reader.tell() == 80

    def test_errors_propagate(self, server, settings):
        with self._client(server, settings) as client:
            with pytest.raises(ItemNotFoundError):
                client.get_item_metadata("missing.txt")

    def test_close_closes_http_client(self, server, settings):
        client = self._client(server, settings)
        http_client = client._async_obj._http.client
        client.close()
        assert http_client.is_closed
