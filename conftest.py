# conftest.py

import pytest
from typing import AsyncGenerator

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from relay.app import create_app
from relay.core.contracts import Container


# 默认资产：文件名 <AssetType>.<asset_id>.<format>
DEFAULT_BITMAP_ID = "cd21514d0531fdffb22204e0ec5ed84a"
DEFAULT_BITMAP_BYTES = b"\x89PNG default bitmap"


@pytest.fixture
def relay_env(tmp_path, monkeypatch):
    """
    为应用准备一个隔离的环境：一个本地对象存储目录和一个默认资产目录。
    清除可能从 .env 或外部环境带入的来源配置。
    """
    for var in ("RELAY_WEB_SOURCES", "RELAY_BUCKET_SOURCES"):
        monkeypatch.delenv(var, raising=False)

    builtin_dir = tmp_path / "builtin"
    builtin_dir.mkdir()
    (builtin_dir / f"ImageBitmap.{DEFAULT_BITMAP_ID}.png").write_bytes(DEFAULT_BITMAP_BYTES)

    store_dir = tmp_path / "store"
    monkeypatch.setenv("RELAY_BUILTIN_ASSETS_DIR", str(builtin_dir))
    monkeypatch.setenv("RELAY_LOCAL_STORE_DIR", str(store_dir))
    return {
        "builtin_dir": builtin_dir,
        "store_dir": store_dir,
        "default_bitmap_id": DEFAULT_BITMAP_ID,
        "default_bitmap_bytes": DEFAULT_BITMAP_BYTES,
    }


@pytest.fixture
def app(relay_env) -> FastAPI:
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    一个正确处理应用生命周期的 AsyncClient。
    LifespanManager 触发启动/关闭事件，ASGITransport 把请求直接交给应用。
    """
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture
def container(app: FastAPI, client: AsyncClient) -> Container:
    """client fixture 已经启动了应用，容器挂在 app.state 上。"""
    return app.state.container
