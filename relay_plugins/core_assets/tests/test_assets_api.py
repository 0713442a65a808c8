# relay_plugins/core_assets/tests/test_assets_api.py

import pytest
from httpx import AsyncClient

from relay_plugins.core_assets.contracts import TransportError
from relay_plugins.core_assets.models import AssetType, md5_hex
from relay_plugins.core_assets.storage import AssetStorage

pytestmark = pytest.mark.asyncio


async def test_default_asset_is_served(client: AsyncClient, container, relay_env):
    response = await client.get(f"/api/assets/ImageBitmap/{relay_env['default_bitmap_id']}")

    assert response.status_code == 200
    assert response.content == relay_env["default_bitmap_bytes"]
    assert response.headers["content-type"] == "image/png"

    storage: AssetStorage = container.resolve("asset_storage")
    assert storage.get_default_asset_id(AssetType.IMAGE_BITMAP) == relay_env["default_bitmap_id"]


async def test_unknown_asset_is_404(client: AsyncClient):
    response = await client.get("/api/assets/Sound/does-not-exist")
    assert response.status_code == 404


async def test_unknown_asset_type_is_422(client: AsyncClient):
    response = await client.get("/api/assets/Costume/abc")
    assert response.status_code == 422


async def test_create_then_load(client: AsyncClient, relay_env):
    payload = b"RIFF....WAVEfmt "

    response = await client.post("/api/assets/Sound", content=payload)

    assert response.status_code == 201
    asset_id = md5_hex(payload)
    assert response.json() == {"key": f"{asset_id}.wav", "size": len(payload), "id": asset_id}
    assert (relay_env["store_dir"] / f"{asset_id}.wav").read_bytes() == payload

    response = await client.get(f"/api/assets/Sound/{asset_id}")
    assert response.status_code == 200
    assert response.content == payload


async def test_update_with_explicit_format(client: AsyncClient, relay_env):
    response = await client.put("/api/assets/Sprite/sprite-1?data_format=json", content=b'{"name": "cat"}')

    assert response.status_code == 200
    assert response.json()["id"] == "sprite-1"
    assert (relay_env["store_dir"] / "sprite-1.json").read_bytes() == b'{"name": "cat"}'


async def test_load_from_local_store_after_restart(client: AsyncClient, relay_env, container):
    (relay_env["store_dir"] / "beep.wav").write_bytes(b"RIFF")
    storage: AssetStorage = container.resolve("asset_storage")
    assert storage.get("beep") is None

    response = await client.get("/api/assets/Sound/beep")

    assert response.status_code == 200
    assert storage.get("beep").data == b"RIFF"


async def test_project_write_is_rejected(client: AsyncClient):
    response = await client.put("/api/assets/Project/1", content=b"{}")
    assert response.status_code == 400


async def test_empty_body_is_rejected(client: AsyncClient):
    response = await client.post("/api/assets/Sound", content=b"")
    assert response.status_code == 400


async def test_backend_failures_are_502(client: AsyncClient, container, monkeypatch):
    storage: AssetStorage = container.resolve("asset_storage")

    async def broken_get_bytes(key):
        raise TransportError(503, url=f"https://bucket.test/{key}")

    local_store = storage.object_store_helper.stores[0]
    monkeypatch.setattr(local_store.client, "get_bytes", broken_get_bytes)

    response = await client.get("/api/assets/Sound/beep")

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert len(detail["errors"]) == 1
    assert "503" in detail["errors"][0]
