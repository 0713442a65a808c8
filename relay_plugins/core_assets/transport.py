# relay_plugins/core_assets/transport.py

import logging
from typing import Any, Dict, Optional, Union

import httpx

from .contracts import TransportError

logger = logging.getLogger(__name__)

# 一个 URL 字符串，或带有 url 以及可选 method / headers / content / params / timeout 的字典。
# 认证等细节由调用方放进 headers，传输层不理解它们。
RequestDescriptor = Union[str, Dict[str, Any]]


class FetchTool:
    """
    基于 httpx 的单次请求传输层。
    get() 在 2xx 时返回字节、在 404 时返回 None；其他状态码和网络故障都抛出 TransportError。
    """
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.http_client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        # 附加到每个请求上的元数据头，例如项目 id
        self._metadata: Dict[str, str] = {}

    def set_metadata(self, name: str, value: str) -> None:
        self._metadata[name] = value

    def unset_metadata(self, name: str) -> None:
        self._metadata.pop(name, None)

    @property
    def metadata(self) -> Dict[str, str]:
        return dict(self._metadata)

    def _build_request(self, request: RequestDescriptor, default_method: str) -> httpx.Request:
        if isinstance(request, str):
            request = {"url": request}
        if not request.get("url"):
            raise ValueError("Request descriptor requires a 'url'.")

        headers = {**self._metadata, **(request.get("headers") or {})}
        extensions = {}
        if request.get("timeout") is not None:
            timeout = float(request["timeout"])
            extensions["timeout"] = {"connect": timeout, "read": timeout, "write": timeout, "pool": timeout}

        return self.http_client.build_request(
            request.get("method", default_method).upper(),
            request["url"],
            headers=headers,
            params=request.get("params"),
            content=request.get("content", request.get("body")),
            extensions=extensions or None,
        )

    async def _execute(self, request: RequestDescriptor, default_method: str) -> httpx.Response:
        http_request = self._build_request(request, default_method)
        url = str(http_request.url)
        try:
            response = await self.http_client.send(http_request)
        except httpx.RequestError as e:
            logger.debug(f"Network error for {http_request.method} {url}: {e}")
            raise TransportError(None, url, message=f"Network error for '{url}': {e}") from e
        return response

    async def get(self, request: RequestDescriptor) -> Optional[bytes]:
        response = await self._execute(request, "GET")
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise TransportError(response.status_code, str(response.request.url))
        return response.content

    async def get_text(self, request: RequestDescriptor) -> Optional[str]:
        """与 get() 相同的状态语义，返回解码后的文本。"""
        response = await self._execute(request, "GET")
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise TransportError(response.status_code, str(response.request.url))
        return response.text

    async def send(self, request: RequestDescriptor) -> str:
        response = await self._execute(request, "POST")
        if not response.is_success:
            raise TransportError(response.status_code, str(response.request.url))
        return response.text

    async def aclose(self) -> None:
        await self.http_client.aclose()
