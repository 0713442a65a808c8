# relay_plugins/core_assets/object_store_helper.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from .contracts import ObjectStoreClient
from .fanout import StoreFanOutHelper, type_names
from .models import Asset, AssetType, DataFormat, md5_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectStoreRecord:
    types: FrozenSet[str]
    client: ObjectStoreClient
    path_prefix: str = ""
    create: bool = False
    update: bool = False

    def key_for(self, asset_id: str, data_format: DataFormat) -> str:
        return f"{self.path_prefix}{asset_id}.{data_format.value}"


class ObjectStoreHelper(StoreFanOutHelper[ObjectStoreRecord]):
    """
    从对象存储桶加载资产。对象 key 为 <path_prefix><asset_id>.<format>。
    创建请求没有 id，使用数据的 MD5 作为 id（内容寻址），再按同样的规则写入。
    """

    def add_store(
        self,
        types: Union[ObjectStoreRecord, Iterable[Union[AssetType, str]]],
        client: Optional[ObjectStoreClient] = None,
        path_prefix: str = "",
        create: bool = False,
        update: bool = False
    ) -> None:
        if isinstance(types, ObjectStoreRecord):
            super().add_store(types)
            return
        if client is None:
            raise ValueError("ObjectStoreHelper.add_store requires a client.")
        if path_prefix and not path_prefix.endswith('/'):
            path_prefix = f"{path_prefix}/"
        super().add_store(ObjectStoreRecord(type_names(types), client, path_prefix, create, update))

    async def fetch(self, store: ObjectStoreRecord, asset: Asset) -> Optional[bytes]:
        return await store.client.get_bytes(store.key_for(asset.asset_id, asset.data_format))

    async def write(
        self,
        store: ObjectStoreRecord,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str]
    ) -> Dict[str, Any]:
        asset_id = asset_id or md5_hex(data)
        key = store.key_for(asset_id, data_format)
        logger.debug(f"Writing {asset_type.value} '{key}' ({len(data)} bytes)")
        metadata = await store.client.put_bytes(key, data, content_type=asset_type.content_type)
        metadata = dict(metadata or {})
        metadata.setdefault("id", asset_id)
        return metadata
