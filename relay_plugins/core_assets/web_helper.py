# relay_plugins/core_assets/web_helper.py

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Union

from .contracts import NoAppropriateStoreError
from .fanout import StoreFanOutHelper, type_names
from .models import Asset, AssetType, DataFormat
from .transport import FetchTool, RequestDescriptor

logger = logging.getLogger(__name__)

# 根据资产计算 URL 或请求描述；返回 None 表示该 store 不处理这个资产
UrlFunction = Callable[[Asset], Optional[RequestDescriptor]]


@dataclass(frozen=True)
class WebStoreRecord:
    types: FrozenSet[str]
    get_function: UrlFunction
    create_function: Optional[UrlFunction] = None
    update_function: Optional[UrlFunction] = None

    @property
    def create(self) -> bool:
        return self.create_function is not None

    @property
    def update(self) -> bool:
        return self.update_function is not None


def url_template(template: str) -> UrlFunction:
    """由形如 https://host/{asset_type}/{asset_id}.{data_format} 的模板生成 UrlFunction。"""
    def _url(asset: Asset) -> str:
        return template.format(
            asset_id=asset.asset_id or "",
            data_format=asset.data_format.value if asset.data_format else "",
            asset_type=asset.asset_type.value,
        )
    return _url


class WebHelper(StoreFanOutHelper[WebStoreRecord]):
    """通过 HTTP 端点加载和写入资产。每个 store 由一组 URL 函数描述。"""

    def __init__(self, fetch_tool: FetchTool):
        super().__init__()
        self.fetch_tool = fetch_tool

    def add_store(
        self,
        types: Union[WebStoreRecord, Iterable[Union[AssetType, str]]],
        get_function: Optional[Union[UrlFunction, str]] = None,
        create_function: Optional[Union[UrlFunction, str]] = None,
        update_function: Optional[Union[UrlFunction, str]] = None
    ) -> None:
        if isinstance(types, WebStoreRecord):
            super().add_store(types)
            return
        if get_function is None:
            raise ValueError("WebHelper.add_store requires a get_function.")

        def _as_function(fn):
            return url_template(fn) if isinstance(fn, str) else fn

        super().add_store(WebStoreRecord(
            type_names(types),
            _as_function(get_function),
            _as_function(create_function),
            _as_function(update_function),
        ))

    async def fetch(self, store: WebStoreRecord, asset: Asset) -> Optional[bytes]:
        request = store.get_function(asset)
        if not request:
            # 该 store 明确拒绝了这个资产，等同于“不存在”
            return None
        return await self.fetch_tool.get(request)

    async def write(
        self,
        store: WebStoreRecord,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str]
    ) -> Dict[str, Any]:
        asset = Asset(asset_type=asset_type, asset_id=asset_id, data_format=data_format)
        if asset_id is None:
            request, method = store.create_function(asset), "POST"
        else:
            request, method = store.update_function(asset), "PUT"
        if not request:
            raise NoAppropriateStoreError(f"Selected web store declined to write {asset_type.value} '{asset_id}'")
        if isinstance(request, str):
            request = {"url": request}

        request = {
            "method": method,
            **request,
            "content": data,
            "headers": {"Content-Type": asset_type.content_type, **(request.get("headers") or {})},
        }
        body = await self.fetch_tool.send(request)
        return self._parse_metadata(body, asset_id)

    @staticmethod
    def _parse_metadata(body: str, asset_id: Optional[str]) -> Dict[str, Any]:
        try:
            parsed = json.loads(body) if body else None
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        logger.debug("Store response body is not a JSON object.")
        return {"id": asset_id} if asset_id else {}
