# relay/app.py
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from relay.container import Container
from relay.core.hooks import HookManager
from relay.core.loader import PluginLoader

logger = logging.getLogger(__name__)


def build_platform(enabled_plugins: Optional[List[str]] = None) -> Container:
    """创建容器与钩子管理器并同步注册所有插件。不触发任何异步钩子。"""
    container = Container()
    hook_manager = HookManager(container)
    container.register("container", lambda: container)
    container.register("hook_manager", lambda: hook_manager)

    PluginLoader(container, hook_manager).load_plugins(enabled_plugins)
    return container


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- 启动阶段 ---
    container = build_platform()
    hook_manager: HookManager = container.resolve("hook_manager")
    app.state.container = container
    hook_manager.add_shared_context("app", app)

    logger.info("正在为异步初始化触发 'services_post_register' 钩子...")
    await hook_manager.trigger('services_post_register')

    routers: List[APIRouter] = await hook_manager.filter("collect_api_routers", [])
    if routers:
        for router in routers:
            app.include_router(router)
            logger.debug(f"已添加路由: prefix='{router.prefix}', tags={router.tags}")
    else:
        logger.warning("未从插件中收集到任何 API 路由。")

    logger.info("--- asset-relay 已就绪 ---")
    yield
    # --- 关闭阶段 ---
    logger.info("--- asset-relay 正在关闭 ---")
    await hook_manager.trigger('app_shutdown')


def create_app() -> FastAPI:
    """应用工厂函数"""
    app = FastAPI(
        title="asset-relay",
        version="0.3.0",
        lifespan=lifespan
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app
