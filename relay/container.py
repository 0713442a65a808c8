# relay/container.py

import inspect
import logging
import threading
from typing import Any, Callable, Dict, List

from relay.core.contracts import Container as ContainerInterface

logger = logging.getLogger(__name__)


class Container(ContainerInterface):
    """
    进程级依赖注入容器。
    服务以工厂函数注册，默认按单例解析；工厂可以声明一个参数来接收容器本身。
    """
    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, bool] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()
        # 每个线程独立的解析路径，用于检测循环依赖
        self._local = threading.local()

    def _resolution_path(self) -> List[str]:
        if not hasattr(self._local, 'path'):
            self._local.path = []
        return self._local.path

    def register(self, name: str, factory: Callable, singleton: bool = True) -> None:
        with self._lock:
            if name in self._factories:
                logger.warning(f"Overwriting service registration for '{name}'")
                self._instances.pop(name, None)
            self._factories[name] = factory
            self._singletons[name] = singleton

    def has(self, name: str) -> bool:
        return name in self._factories

    def _build(self, name: str) -> Any:
        factory = self._factories[name]
        # 无参工厂，例如 lambda: instance
        if not inspect.signature(factory).parameters:
            return factory()
        return factory(self)

    def resolve(self, name: str) -> Any:
        path = self._resolution_path()
        if name in path:
            raise RuntimeError(f"Circular dependency detected: {' -> '.join(path + [name])}")

        if name not in self._factories:
            raise ValueError(f"Service '{name}' not found in container.")

        if not self._singletons[name]:
            path.append(name)
            try:
                return self._build(name)
            finally:
                path.pop()

        if name in self._instances:
            return self._instances[name]

        path.append(name)
        try:
            with self._lock:
                if name not in self._instances:
                    self._instances[name] = self._build(name)
                    logger.debug(f"Resolved singleton service '{name}'.")
                return self._instances[name]
        finally:
            path.pop()
