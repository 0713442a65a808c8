# relay_plugins/core_assets/clients.py

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import aiofiles.os

from .contracts import ObjectStoreClient
from .transport import FetchTool

logger = logging.getLogger(__name__)


class HttpBucketClient(ObjectStoreClient):
    """
    通过 HTTP 访问的对象存储桶：GET/PUT <base_url>/<key>。
    适用于公开读取的 GCS / S3 桶或任何同构的静态文件服务。
    """
    def __init__(self, fetch_tool: FetchTool, base_url: str, headers: Optional[Dict[str, str]] = None):
        if not base_url:
            raise ValueError("HttpBucketClient requires a 'base_url'.")
        self.fetch_tool = fetch_tool
        self.base_url = base_url.rstrip('/')
        self.headers = dict(headers or {})

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    async def get_bytes(self, key: str) -> Optional[bytes]:
        return await self.fetch_tool.get({"url": self._url(key), "headers": self.headers})

    async def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
        headers = dict(self.headers)
        if content_type:
            headers["Content-Type"] = content_type
        await self.fetch_tool.send({"url": self._url(key), "method": "PUT", "content": data, "headers": headers})
        return {"key": key, "size": len(data)}


class LocalDirectoryClient(ObjectStoreClient):
    """把一个本地目录当作 key/value 字节存储。"""
    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalDirectoryClient initialized at {self.root_dir.resolve()}")

    def _path(self, key: str) -> Path:
        path = (self.root_dir / key).resolve()
        # key 不得逃出根目录
        if not path.is_relative_to(self.root_dir.resolve()):
            raise ValueError(f"Invalid object key: '{key}'")
        return path

    async def get_bytes(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not await aiofiles.os.path.isfile(path):
            return None
        async with aiofiles.open(path, 'rb') as f:
            return await f.read()

    async def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
        path = self._path(key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, 'wb') as f:
            await f.write(data)
        return {"key": key, "size": len(data)}


class MemoryBucketClient(ObjectStoreClient):
    """进程内的对象桶，用于开发与测试。"""
    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})

    async def get_bytes(self, key: str) -> Optional[bytes]:
        await asyncio.sleep(0)
        return self.objects.get(key)

    async def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.objects[key] = bytes(data)
        return {"key": key, "size": len(data)}
