# relay/core/hooks.py
import asyncio
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from relay.core.contracts import HookManager as HookManagerInterface, Container

logger = logging.getLogger(__name__)

T = TypeVar('T')

HookCallable = Callable[..., Awaitable[Any]]


@dataclass(order=True)
class HookImplementation:
    """一个钩子实现及其元数据。priority 越小越先执行。"""
    priority: int
    func: HookCallable = field(compare=False)
    plugin_name: str = field(compare=False, default="<core>")


class HookManager(HookManagerInterface):
    """
    异步钩子调度器。
    钩子函数按参数名从共享上下文（container、hook_manager 等）与本次调用的
    关键字参数中取值，只注入它声明过的参数。
    """
    def __init__(self, container: Optional[Container] = None):
        self._hooks: Dict[str, List[HookImplementation]] = defaultdict(list)
        self._shared_context: Dict[str, Any] = {"hook_manager": self}
        if container is not None:
            self._shared_context["container"] = container

    def add_shared_context(self, name: str, service: Any) -> None:
        if name in self._shared_context:
            logger.warning(f"Overwriting shared context for hooks: '{name}'")
        self._shared_context[name] = service

    def hook_names(self) -> List[str]:
        return list(self._hooks.keys())

    @staticmethod
    def _select_kwargs(func: HookCallable, context: Dict[str, Any], skip: int = 0) -> Dict[str, Any]:
        params = list(inspect.signature(func).parameters.values())[skip:]
        if any(p.kind == p.VAR_KEYWORD for p in params):
            return dict(context)
        return {p.name: context[p.name] for p in params if p.name in context}

    def add_implementation(
        self,
        hook_name: str,
        implementation: HookCallable,
        priority: int = 10,
        plugin_name: str = "<core>"
    ):
        if not asyncio.iscoroutinefunction(implementation):
            raise TypeError(f"Hook implementation for '{hook_name}' must be an async function.")
        self._hooks[hook_name].append(HookImplementation(priority, implementation, plugin_name))
        self._hooks[hook_name].sort()
        logger.debug(f"Registered hook '{hook_name}' from plugin '{plugin_name}' with priority {priority}.")

    async def trigger(self, hook_name: str, **kwargs: Any) -> None:
        """通知型钩子：并发执行所有实现，单个实现的异常只记录日志。"""
        implementations = list(self._hooks.get(hook_name, []))
        if not implementations:
            return

        context = {**self._shared_context, **kwargs}
        results = await asyncio.gather(
            *(impl.func(**self._select_kwargs(impl.func, context)) for impl in implementations),
            return_exceptions=True
        )
        for impl, result in zip(implementations, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Error in NOTIFICATION hook '{hook_name}' from plugin '{impl.plugin_name}': {result}",
                    exc_info=result
                )

    async def filter(self, hook_name: str, data: T, **kwargs: Any) -> T:
        """过滤型钩子：按优先级串行执行，每个实现接收上一个实现的返回值。"""
        context = {**self._shared_context, **kwargs}
        current = data
        for impl in list(self._hooks.get(hook_name, [])):
            try:
                current = await impl.func(current, **self._select_kwargs(impl.func, context, skip=1))
            except Exception as e:
                logger.error(
                    f"Error in FILTER hook '{hook_name}' from plugin '{impl.plugin_name}'. Skipping. Error: {e}",
                    exc_info=e
                )
        return current
