# relay/core/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

# --- 平台核心服务接口 ---
# 插件只依赖这些接口，不直接导入 relay.container / relay.core.hooks 的实现。

T = TypeVar('T')

# 插件注册函数的标准签名
PluginRegisterFunc = Callable[['Container', 'HookManager'], None]


class Container(ABC):
    @abstractmethod
    def register(self, name: str, factory: Callable, singleton: bool = True) -> None: raise NotImplementedError
    @abstractmethod
    def resolve(self, name: str) -> Any: raise NotImplementedError
    @abstractmethod
    def has(self, name: str) -> bool: raise NotImplementedError


class HookManager(ABC):
    @abstractmethod
    def add_implementation(self, hook_name: str, implementation: Callable, priority: int = 10, plugin_name: str = "<unknown>"): raise NotImplementedError
    @abstractmethod
    async def trigger(self, hook_name: str, **kwargs: Any) -> None: raise NotImplementedError
    @abstractmethod
    async def filter(self, hook_name: str, data: T, **kwargs: Any) -> T: raise NotImplementedError
