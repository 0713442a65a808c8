# relay_plugins/core_assets/models.py

import base64
import hashlib
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel

from .contracts import AssetStorageError


class DataFormat(str, Enum):
    """资产负载的序列化格式，值即文件扩展名。"""
    JPG = "jpg"
    JSON = "json"
    MP3 = "mp3"
    PNG = "png"
    SB2 = "sb2"
    SB3 = "sb3"
    SVG = "svg"
    WAV = "wav"


class _AssetTypeInfo(NamedTuple):
    content_type: str
    runtime_format: DataFormat
    immutable: bool


class AssetType(str, Enum):
    """受支持的资产类型。值即类型名，store 的类型过滤按这个名字进行。"""
    IMAGE_BITMAP = "ImageBitmap"
    IMAGE_VECTOR = "ImageVector"
    PROJECT = "Project"
    SOUND = "Sound"
    SPRITE = "Sprite"

    @property
    def content_type(self) -> str:
        return _ASSET_TYPE_INFO[self].content_type

    @property
    def runtime_format(self) -> DataFormat:
        return _ASSET_TYPE_INFO[self].runtime_format

    @property
    def immutable(self) -> bool:
        """不可变资产的 id 可以由内容的 MD5 推导。"""
        return _ASSET_TYPE_INFO[self].immutable


_ASSET_TYPE_INFO = {
    AssetType.IMAGE_BITMAP: _AssetTypeInfo("image/png", DataFormat.PNG, True),
    AssetType.IMAGE_VECTOR: _AssetTypeInfo("image/svg+xml", DataFormat.SVG, True),
    AssetType.PROJECT: _AssetTypeInfo("application/json", DataFormat.JSON, False),
    AssetType.SOUND: _AssetTypeInfo("audio/x-wav", DataFormat.WAV, True),
    AssetType.SPRITE: _AssetTypeInfo("application/json", DataFormat.JSON, True),
}


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class Asset(BaseModel):
    """
    一个有类型、有格式、有标识的二进制资产。
    可以先以“空”状态创建（负载待定），随后由解析流程调用一次 set_data 填充负载。
    """
    asset_type: AssetType
    asset_id: Optional[str] = None
    data_format: Optional[DataFormat] = None
    data: Optional[bytes] = None

    @classmethod
    def from_data(
        cls,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None,
        generate_id: bool = False
    ) -> "Asset":
        asset = cls(asset_type=asset_type, asset_id=asset_id, data_format=data_format)
        asset.set_data(data, data_format, generate_id=generate_id)
        return asset

    @property
    def has_data(self) -> bool:
        return bool(self.data)

    def set_data(self, data: bytes, data_format: Optional[DataFormat] = None, generate_id: bool = False) -> None:
        """填充负载。每个资产只能填充一次。"""
        if self.data is not None:
            raise AssetStorageError(f"Asset '{self.asset_id}' already has data.")
        self.data = bytes(data)
        if data_format is not None:
            self.data_format = data_format
        if generate_id and not self.asset_id:
            self.asset_id = md5_hex(self.data)

    def decode_text(self) -> str:
        return (self.data or b"").decode("utf-8")

    def encode_text_data(self, text: str, data_format: DataFormat, generate_id: bool = False) -> None:
        self.set_data(text.encode("utf-8"), data_format, generate_id=generate_id)

    def encode_data_uri(self, content_type: Optional[str] = None) -> str:
        content_type = content_type or self.asset_type.content_type
        encoded = base64.b64encode(self.data or b"").decode("ascii")
        return f"data:{content_type};base64,{encoded}"
