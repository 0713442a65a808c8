# relay_plugins/core_assets/tests/test_clients.py

import pytest

from relay_plugins.core_assets.clients import HttpBucketClient, LocalDirectoryClient, MemoryBucketClient
from relay_plugins.core_assets.contracts import TransportError

pytestmark = pytest.mark.asyncio


class TestLocalDirectoryClient:

    async def test_put_then_get(self, tmp_path):
        client = LocalDirectoryClient(str(tmp_path / "store"))

        metadata = await client.put_bytes("internalapi/asset/beep.wav", b"RIFF")

        assert metadata == {"key": "internalapi/asset/beep.wav", "size": 4}
        assert (tmp_path / "store" / "internalapi" / "asset" / "beep.wav").read_bytes() == b"RIFF"
        assert await client.get_bytes("internalapi/asset/beep.wav") == b"RIFF"

    async def test_missing_key_is_none(self, tmp_path):
        client = LocalDirectoryClient(str(tmp_path))
        assert await client.get_bytes("nope.png") is None

    async def test_key_cannot_escape_root(self, tmp_path):
        client = LocalDirectoryClient(str(tmp_path / "store"))

        with pytest.raises(ValueError, match="Invalid object key"):
            await client.get_bytes("../secret.txt")
        with pytest.raises(ValueError):
            await client.put_bytes("../../etc/passwd", b"x")


class TestHttpBucketClient:

    async def test_get_builds_url_from_key(self, mock_fetch_tool, http_requests):
        fetch_tool = mock_fetch_tool({"https://bucket.test/assets/abc.png": (200, b"PNG")})
        client = HttpBucketClient(fetch_tool, "https://bucket.test/", headers={"X-Api-Key": "k"})

        assert await client.get_bytes("assets/abc.png") == b"PNG"
        assert http_requests[0].headers["X-Api-Key"] == "k"

    async def test_missing_object_is_none(self, mock_fetch_tool):
        client = HttpBucketClient(mock_fetch_tool(), "https://bucket.test")
        assert await client.get_bytes("abc.png") is None

    async def test_put_sends_content_type(self, mock_fetch_tool, http_requests):
        fetch_tool = mock_fetch_tool({"https://bucket.test/abc.png": (200, b"")})
        client = HttpBucketClient(fetch_tool, "https://bucket.test")

        metadata = await client.put_bytes("abc.png", b"PNG", content_type="image/png")

        request = http_requests[0]
        assert request.method == "PUT"
        assert request.headers["Content-Type"] == "image/png"
        assert request.content == b"PNG"
        assert metadata == {"key": "abc.png", "size": 3}

    async def test_put_failure_raises(self, mock_fetch_tool):
        client = HttpBucketClient(mock_fetch_tool({"https://bucket.test/abc.png": (403, b"")}), "https://bucket.test")

        with pytest.raises(TransportError) as exc_info:
            await client.put_bytes("abc.png", b"PNG")
        assert exc_info.value.status_code == 403

    async def test_requires_base_url(self, mock_fetch_tool):
        with pytest.raises(ValueError):
            HttpBucketClient(mock_fetch_tool(), "")


async def test_memory_bucket_client():
    client = MemoryBucketClient({"a.png": b"A"})

    await client.put_bytes("b.png", b"B")

    assert await client.get_bytes("a.png") == b"A"
    assert await client.get_bytes("b.png") == b"B"
    assert await client.get_bytes("c.png") is None
