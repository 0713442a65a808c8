# relay_plugins/core_assets/fanout.py

import logging
from abc import abstractmethod
from typing import Any, Dict, FrozenSet, Generic, Iterable, List, Optional, TypeVar, Union

from .contracts import (
    Helper,
    LoadAttempt,
    NoAppropriateStoreError,
    StoreFanOutError,
    UnsupportedAssetTypeError,
    is_create_request,
)
from .models import Asset, AssetType, DataFormat

logger = logging.getLogger(__name__)

# 每种 store 记录都提供 types / create / update 三个属性
R = TypeVar('R')


def type_names(types: Iterable[Union[AssetType, str]]) -> FrozenSet[str]:
    """把 AssetType 成员或类型名统一成类型名集合。"""
    return frozenset(t.value if isinstance(t, AssetType) else AssetType(t).value for t in types)


class StoreFanOutHelper(Helper, Generic[R]):
    """
    持有同一类后端的多个已注册 store，并在它们之间执行惰性顺序回退：
    按注册顺序逐个尝试，拿到字节即返回；“不存在”则继续下一个；
    出错则记录并继续下一个；全部用尽时，有错误就抛出 StoreFanOutError，否则返回 None。
    """
    def __init__(self):
        self.stores: List[R] = []

    def add_store(self, record: R) -> None:
        """追加一个 store。不去重，也不检查类型是否与已有 store 重叠。"""
        self.stores.append(record)

    def candidate_stores(self, asset_type: AssetType) -> List[R]:
        return [store for store in self.stores if asset_type.value in store.types]

    def select_store(self, asset_type: AssetType, create: bool) -> Optional[R]:
        """按注册顺序选出第一个声明了该类型且具备 create（或 update）能力的 store。"""
        for store in self.candidate_stores(asset_type):
            if (store.create if create else store.update):
                return store
        return None

    def load(self, asset_type: AssetType, asset_id: str, data_format: DataFormat) -> LoadAttempt:
        candidates = self.candidate_stores(asset_type)
        if not candidates:
            return LoadAttempt.skip()

        if asset_type is AssetType.PROJECT:
            logger.warning("Project loading is not supported yet")
            return LoadAttempt.pending(self._unsupported(asset_type))
        return LoadAttempt.pending(self._load_from(candidates, asset_type, asset_id, data_format))

    @staticmethod
    async def _unsupported(asset_type: AssetType) -> Optional[Asset]:
        raise UnsupportedAssetTypeError(f"{asset_type.value} loading is not supported yet")

    async def _load_from(
        self,
        candidates: List[R],
        asset_type: AssetType,
        asset_id: str,
        data_format: DataFormat
    ) -> Optional[Asset]:
        errors: List[Exception] = []
        for index, store in enumerate(candidates):
            asset = Asset(asset_type=asset_type, asset_id=asset_id, data_format=data_format)
            logger.debug(f"{type(self).__name__}: trying store {index + 1}/{len(candidates)} for {asset_type.value} '{asset_id}'")
            try:
                data = await self.fetch(store, asset)
            except Exception as e:
                logger.warning(f"{type(self).__name__}: store {index + 1} failed for '{asset_id}.{data_format.value}': {e}")
                errors.append(e)
                continue

            if data:
                asset.set_data(data, data_format)
                return asset
            logger.debug(f"{type(self).__name__}: '{asset_id}.{data_format.value}' not found in store {index + 1}")

        if errors:
            raise StoreFanOutError(
                f"All {len(candidates)} stores of {type(self).__name__} failed for '{asset_id}'", errors
            )
        return None

    async def store(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None
    ) -> Dict[str, Any]:
        if asset_type is AssetType.PROJECT:
            logger.warning("Project storing is not supported yet")
            raise UnsupportedAssetTypeError(f"{asset_type.value} storing is not supported yet")

        create = is_create_request(asset_id)
        store = self.select_store(asset_type, create)
        if store is None:
            raise NoAppropriateStoreError()
        return await self.write(store, asset_type, data_format, data, None if create else asset_id)

    @abstractmethod
    async def fetch(self, store: R, asset: Asset) -> Optional[bytes]:
        """从单个 store 读取资产字节；不存在时返回 None。"""
        raise NotImplementedError

    @abstractmethod
    async def write(
        self,
        store: R,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str]
    ) -> Dict[str, Any]:
        """向单个 store 发出一次写请求。asset_id 为 None 表示创建。"""
        raise NotImplementedError
