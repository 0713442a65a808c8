# relay_plugins/core_assets/builtin_helper.py

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import aiofiles

from .contracts import AssetStorageError, Helper, LoadAttempt
from .models import Asset, AssetType, DataFormat, md5_hex

if TYPE_CHECKING:
    from .storage import AssetStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltinAssetRecord:
    """一个默认资产。它的 id 会成为该类型的默认资产 id。"""
    asset_type: AssetType
    data_format: DataFormat
    asset_id: str
    data: bytes


class BuiltinHelper(Helper):
    """
    内存中的资产缓存。
    - 解析流程在远端加载或写入成功后把资产镜像到这里。
    - 未缓存的 id 会让 load() 直接返回 skip，协调器无需等待即可尝试下一个 helper。
    """
    def __init__(self):
        self._assets: Dict[str, Asset] = {}

    def __contains__(self, asset_id: str) -> bool:
        return asset_id in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def load(self, asset_type: AssetType, asset_id: str, data_format: DataFormat) -> LoadAttempt:
        asset = self.get(asset_id)
        if asset is None:
            return LoadAttempt.skip()
        # 同一 id 的其他类型或格式不算命中
        if asset.asset_type != asset_type or asset.data_format != data_format:
            logger.debug(f"Cached '{asset_id}' is {asset.asset_type.value}/{asset.data_format.value}; skipping.")
            return LoadAttempt.skip()
        return LoadAttempt.pending(self._resolved(asset))

    @staticmethod
    async def _resolved(asset: Asset) -> Asset:
        return asset

    def store_asset(self, asset: Asset) -> str:
        if not asset.asset_id:
            raise AssetStorageError("Tried to cache an asset without an ID")
        # 后写覆盖先写，不加锁
        self._assets[asset.asset_id] = asset
        return asset.asset_id

    def store_data(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None
    ) -> str:
        """缓存一段数据，返回其 id。未提供 id 时，不可变类型使用数据的 MD5。"""
        if not data_format:
            raise AssetStorageError("Data cached without specifying its format")
        if not asset_id:
            if not asset_type.immutable:
                raise AssetStorageError("Tried to cache mutable data without an ID")
            asset_id = md5_hex(data)
        return self.store_asset(Asset.from_data(asset_type, data_format, data, asset_id=asset_id))

    async def store(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None
    ) -> Dict[str, Any]:
        return {"id": self.store_data(asset_type, data_format, data, asset_id)}

    def register_default_assets(self, records: Iterable[BuiltinAssetRecord], storage: Optional[AssetStorage] = None) -> int:
        """
        显式注册默认资产。传入 storage 时，同时把每个记录设为该类型的默认资产 id
        （同一类型出现多次时以最后一个为准）。
        """
        count = 0
        for record in records:
            self.store_data(record.asset_type, record.data_format, record.data, record.asset_id)
            if storage is not None:
                storage.set_default_asset_id(record.asset_type, record.asset_id)
            count += 1
        logger.info(f"Registered {count} built-in default assets.")
        return count


async def load_default_assets_from_dir(directory: str) -> List[BuiltinAssetRecord]:
    """
    读取默认资产目录。文件名约定为 <AssetType>.<asset_id>.<format>，
    例如 ImageBitmap.cd21514d0531fdffb22204e0ec5ed84a.png。不符合约定的文件会被跳过。
    """
    root = Path(directory)
    if not root.is_dir():
        logger.warning(f"Built-in assets directory '{directory}' does not exist. No default assets loaded.")
        return []

    records = []
    for path in sorted(root.iterdir()):
        parts = path.name.split('.')
        if not path.is_file() or len(parts) != 3:
            continue
        type_name, asset_id, extension = parts
        try:
            asset_type = AssetType(type_name)
            data_format = DataFormat(extension.lower())
        except ValueError:
            logger.warning(f"Skipping built-in asset file with unknown type or format: '{path.name}'")
            continue
        async with aiofiles.open(path, 'rb') as f:
            data = await f.read()
        records.append(BuiltinAssetRecord(asset_type, data_format, asset_id, data))
    return records
