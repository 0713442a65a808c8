# relay_plugins/core_assets/storage.py

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .builtin_helper import BuiltinHelper
from .contracts import (
    AssetLoadFailedError,
    AssetStorageError,
    Helper,
    NoAppropriateStoreError,
    ObjectStoreClient,
)
from .models import Asset, AssetType, DataFormat
from .object_store_helper import ObjectStoreHelper
from .transport import FetchTool
from .web_helper import UrlFunction, WebHelper

logger = logging.getLogger(__name__)

BUILTIN_PRIORITY = 100
REMOTE_PRIORITY = -100


@dataclass(frozen=True)
class HelperEntry:
    helper: Helper
    priority: int


class AssetStorage:
    """
    资产解析协调器。
    按优先级从高到低依次询问各个 helper，返回第一个成功的结果；
    远端加载或写入成功后，把资产镜像进内置缓存，之后可以用 get() 同步取回。
    """
    def __init__(
        self,
        builtin_helper: Optional[BuiltinHelper] = None,
        object_store_helper: Optional[ObjectStoreHelper] = None,
        web_helper: Optional[WebHelper] = None,
        fetch_tool: Optional[FetchTool] = None
    ):
        self.fetch_tool = fetch_tool or FetchTool()
        self.builtin_helper = builtin_helper or BuiltinHelper()
        self.object_store_helper = object_store_helper or ObjectStoreHelper()
        self.web_helper = web_helper or WebHelper(self.fetch_tool)
        self.default_asset_ids: Dict[AssetType, str] = {}

        # 不可变快照：注册时整体替换，进行中的 load 继续遍历它开始时的快照
        self._helpers: Tuple[HelperEntry, ...] = ()
        self.add_helper(self.builtin_helper, BUILTIN_PRIORITY)
        self.add_helper(self.object_store_helper, REMOTE_PRIORITY)
        self.add_helper(self.web_helper, REMOTE_PRIORITY)

    # --- 注册 ---

    def add_helper(self, helper: Helper, priority: int = 0) -> None:
        """
        添加一个 helper。priority 越大越先被询问；相同优先级按注册顺序。
        作为参照，内置 helper 的优先级是 100，对象存储和 Web helper 是 -100。
        """
        entries = self._helpers + (HelperEntry(helper, priority),)
        self._helpers = tuple(sorted(entries, key=lambda e: -e.priority))

    @property
    def helpers(self) -> List[HelperEntry]:
        return list(self._helpers)

    def add_object_store(
        self,
        types: Iterable[Union[AssetType, str]],
        client: ObjectStoreClient,
        path_prefix: str = "",
        create: bool = False,
        update: bool = False
    ) -> None:
        self.object_store_helper.add_store(types, client, path_prefix=path_prefix, create=create, update=update)

    def add_web_store(
        self,
        types: Iterable[Union[AssetType, str]],
        get_function: Union[UrlFunction, str],
        create_function: Optional[Union[UrlFunction, str]] = None,
        update_function: Optional[Union[UrlFunction, str]] = None
    ) -> None:
        self.web_helper.add_store(types, get_function, create_function, update_function)

    # --- 默认资产 ---

    def get_default_asset_id(self, asset_type: AssetType) -> Optional[str]:
        return self.default_asset_ids.get(asset_type)

    def set_default_asset_id(self, asset_type: AssetType, asset_id: str) -> None:
        self.default_asset_ids[asset_type] = asset_id

    # --- 读取 ---

    def get(self, asset_id: str) -> Optional[Asset]:
        """从内置缓存同步获取资产，不访问任何远端来源。"""
        return self.builtin_helper.get(asset_id)

    def create_asset(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None,
        generate_id: bool = False
    ) -> Asset:
        if not data_format:
            raise AssetStorageError("Tried to create asset without a dataFormat")
        return Asset.from_data(asset_type, data_format, data, asset_id=asset_id, generate_id=generate_id)

    async def load(
        self,
        asset_type: AssetType,
        asset_id: str,
        data_format: Optional[DataFormat] = None
    ) -> Optional[Asset]:
        """
        按类型和 id 加载资产。
        返回 Asset 表示找到；返回 None 表示所有来源都确认不存在；
        抛出 AssetLoadFailedError 表示没有找到且至少一个来源出错（404 不算错误）。
        任何一个来源成功都会抑制之前记录的错误。
        """
        data_format = data_format or asset_type.runtime_format
        errors: List[Exception] = []

        for entry in self._helpers:
            helper = entry.helper
            try:
                attempt = helper.load(asset_type, asset_id, data_format)
                if attempt.skipped:
                    continue
                asset = await attempt.awaitable
            except Exception as e:
                logger.warning(f"{type(helper).__name__} failed to load {asset_type.value} '{asset_id}': {e}")
                errors.append(e)
                continue

            if asset is None:
                continue
            if not asset.has_data:
                logger.warning(f"{type(helper).__name__} returned {asset_type.value} '{asset_id}' without data; ignoring it.")
                continue

            if helper is not self.builtin_helper:
                self._mirror_asset(asset)
            return asset

        if errors:
            raise AssetLoadFailedError(f"Failed to load {asset_type.value} '{asset_id}'", errors)
        return None

    # --- 写入 ---

    async def store(
        self,
        asset_type: AssetType,
        data_format: Optional[DataFormat],
        data: bytes,
        asset_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        创建（asset_id 为空）或更新资产，返回后端的元数据。
        写入成功后，数据以元数据中的 id 镜像进内置缓存。
        """
        data_format = data_format or asset_type.runtime_format
        metadata = await self._store_remote(asset_type, data_format, data, asset_id)
        stored_id = metadata.get("id")
        self._mirror_data(asset_type, data_format, data, str(stored_id) if stored_id is not None else asset_id)
        return metadata

    async def _store_remote(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str]
    ) -> Dict[str, Any]:
        # 对象存储优先；只有在它没有合适的 store 时才询问 Web helper
        no_store_errors: List[NoAppropriateStoreError] = []
        for helper in (self.object_store_helper, self.web_helper):
            try:
                return await helper.store(asset_type, data_format, data, asset_id)
            except NoAppropriateStoreError as e:
                no_store_errors.append(e)
        # 最后一个错误描述最具体，第一个作为 cause 保留
        raise no_store_errors[-1] from no_store_errors[0]

    # --- 缓存镜像：尽力而为，失败只记日志 ---

    def _mirror_asset(self, asset: Asset) -> None:
        try:
            self.builtin_helper.store_asset(asset)
        except Exception:
            logger.warning(f"Failed to cache {asset.asset_type.value} '{asset.asset_id}'", exc_info=True)

    def _mirror_data(self, asset_type: AssetType, data_format: DataFormat, data: bytes, asset_id: Optional[str]) -> None:
        if not asset_id:
            logger.debug(f"Store response for {asset_type.value} has no id; not caching it.")
            return
        try:
            self.builtin_helper.store_data(asset_type, data_format, data, asset_id)
        except Exception:
            logger.warning(f"Failed to cache stored {asset_type.value} '{asset_id}'", exc_info=True)

    async def aclose(self) -> None:
        await self.fetch_tool.aclose()
