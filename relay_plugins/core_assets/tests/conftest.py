# relay_plugins/core_assets/tests/conftest.py

import pytest
from typing import Callable, List, Optional

import httpx

from relay_plugins.core_assets.contracts import Helper, LoadAttempt
from relay_plugins.core_assets.models import Asset, AssetType, DataFormat
from relay_plugins.core_assets.storage import AssetStorage
from relay_plugins.core_assets.transport import FetchTool


class FakeHelper(Helper):
    """
    一个结果可编排的 helper。
    outcome 为 "skip"、None、Asset 或 Exception；每次 load 都会把自己的名字记入 call_log。
    """
    def __init__(self, name: str, outcome, call_log: List[str]):
        self.name = name
        self.outcome = outcome
        self.call_log = call_log

    def load(self, asset_type, asset_id, data_format) -> LoadAttempt:
        self.call_log.append(self.name)
        if self.outcome == "skip":
            return LoadAttempt.skip()
        return LoadAttempt.pending(self._resolve())

    async def _resolve(self) -> Optional[Asset]:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    async def store(self, asset_type, data_format, data, asset_id=None):
        raise NotImplementedError


def make_asset(asset_id: str = "abc123", data: bytes = b"PNG...", asset_type: AssetType = AssetType.IMAGE_BITMAP) -> Asset:
    return Asset.from_data(asset_type, asset_type.runtime_format, data, asset_id=asset_id)


@pytest.fixture
def call_log() -> List[str]:
    return []


@pytest.fixture
def helper_factory(call_log: List[str]) -> Callable[..., FakeHelper]:
    def _factory(name: str, outcome) -> FakeHelper:
        return FakeHelper(name, outcome, call_log)
    return _factory


@pytest.fixture
def http_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_fetch_tool(http_requests: List[httpx.Request]) -> Callable[..., FetchTool]:
    """
    构造一个使用 httpx.MockTransport 的 FetchTool。
    routes 把 URL 映射到 (status_code, body)；未声明的 URL 返回 404。
    """
    def _factory(routes: Optional[dict] = None) -> FetchTool:
        routes = routes or {}

        def handler(request: httpx.Request) -> httpx.Response:
            http_requests.append(request)
            status, body = routes.get(str(request.url), (404, b""))
            if isinstance(status, Exception):
                raise status
            return httpx.Response(status, content=body)

        return FetchTool(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return _factory


@pytest.fixture
def storage(mock_fetch_tool) -> AssetStorage:
    """一个没有注册任何远端来源的 AssetStorage。"""
    return AssetStorage(fetch_tool=mock_fetch_tool())


@pytest.fixture
def asset_factory() -> Callable[..., Asset]:
    return make_asset
