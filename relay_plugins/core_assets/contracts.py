# relay_plugins/core_assets/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Dict, List, Optional

if TYPE_CHECKING:
    from .models import Asset, AssetType, DataFormat


# --- 异常 ---

class AssetStorageError(Exception):
    """asset-relay 所有异常的基类。"""


class TransportError(AssetStorageError):
    """非 2xx 的 HTTP 状态或网络故障。status_code 为 None 表示请求根本没有得到响应。"""
    def __init__(self, status_code: Optional[int], url: Optional[str] = None, message: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        if message is None:
            message = f"HTTP {status_code}" if status_code is not None else "Network error"
            if url:
                message = f"{message} for '{url}'"
        super().__init__(message)


class ConfigurationError(AssetStorageError):
    """没有任何 helper / store 能处理请求的类型或能力。"""


class NoAppropriateStoreError(ConfigurationError):
    def __init__(self, message: str = "No appropriate stores"):
        super().__init__(message)


class UnsupportedAssetTypeError(AssetStorageError, NotImplementedError):
    """尚未支持的资产类别（目前是 Project）。"""


class _AggregateError(AssetStorageError):
    def __init__(self, message: str, errors: List[Exception]):
        self.errors = list(errors)
        super().__init__(message)

    def __str__(self):
        details = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        return f"{super().__str__()} [{details}]" if details else super().__str__()


class StoreFanOutError(_AggregateError):
    """单个 helper 内所有候选 store 都失败（至少一个真正出错）。"""


class AssetLoadFailedError(_AggregateError):
    """所有 helper 都未能返回资产，且至少一个 helper 出错。errors 按尝试顺序排列。"""


# --- load 的显式标记结果 ---

@dataclass(frozen=True)
class LoadAttempt:
    """
    Helper.load 的返回值。
    skip() 表示该 helper 根本不适用于此请求，协调器应立即尝试下一个；
    pending(awaitable) 表示已开始尝试，await 的结果为 Asset、None（确认不存在）或抛出异常。
    """
    awaitable: Optional[Awaitable[Optional["Asset"]]] = None

    @classmethod
    def skip(cls) -> "LoadAttempt":
        return cls()

    @classmethod
    def pending(cls, awaitable: Awaitable[Optional["Asset"]]) -> "LoadAttempt":
        return cls(awaitable)

    @property
    def skipped(self) -> bool:
        return self.awaitable is None


# --- 服务接口 ---

class Helper(ABC):
    """一类资产来源。协调器按优先级依次调用。"""

    @abstractmethod
    def load(self, asset_type: AssetType, asset_id: str, data_format: DataFormat) -> LoadAttempt:
        raise NotImplementedError

    @abstractmethod
    async def store(
        self,
        asset_type: AssetType,
        data_format: DataFormat,
        data: bytes,
        asset_id: Optional[str] = None
    ) -> Dict[str, Any]:
        raise NotImplementedError


class ObjectStoreClient(ABC):
    """按 key 读写字节的对象存储客户端。"""

    @abstractmethod
    async def get_bytes(self, key: str) -> Optional[bytes]:
        """返回对象内容；对象不存在时返回 None；其他故障抛出异常。"""
        raise NotImplementedError

    @abstractmethod
    async def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
        """写入对象并返回后端元数据。"""
        raise NotImplementedError


def is_create_request(asset_id: Optional[str]) -> bool:
    return asset_id is None or asset_id == ""
