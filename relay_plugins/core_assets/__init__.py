# relay_plugins/core_assets/__init__.py

import logging
import os

from relay.core.contracts import Container, HookManager

from .api import assets_router
from .builtin_helper import BuiltinHelper, load_default_assets_from_dir
from .config import configure_storage_from_env, http_timeout_from_env
from .storage import AssetStorage
from .transport import FetchTool

logger = logging.getLogger(__name__)

# --- 服务工厂 (Service Factories) ---

def _create_fetch_tool() -> FetchTool:
    return FetchTool(timeout=http_timeout_from_env())

def _create_builtin_helper() -> BuiltinHelper:
    return BuiltinHelper()

def _create_asset_storage(container: Container) -> AssetStorage:
    storage = AssetStorage(
        builtin_helper=container.resolve("builtin_helper"),
        fetch_tool=container.resolve("fetch_tool"),
    )
    return configure_storage_from_env(storage)


# --- 钩子实现 (Hook Implementations) ---

async def register_default_assets(container: Container):
    """在所有服务注册后，显式地把默认资产载入内置缓存。"""
    storage: AssetStorage = container.resolve("asset_storage")
    assets_dir = os.getenv("RELAY_BUILTIN_ASSETS_DIR")
    if not assets_dir:
        logger.info("RELAY_BUILTIN_ASSETS_DIR not set; no built-in default assets registered.")
        return
    records = await load_default_assets_from_dir(assets_dir)
    storage.builtin_helper.register_default_assets(records, storage)

async def provide_router(routers: list) -> list:
    routers.append(assets_router)
    logger.debug("Provided 'assets_router' to the application.")
    return routers

async def close_transport(container: Container):
    fetch_tool: FetchTool = container.resolve("fetch_tool")
    await fetch_tool.aclose()


def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_assets] 插件...")
    container.register("fetch_tool", _create_fetch_tool, singleton=True)
    container.register("builtin_helper", _create_builtin_helper, singleton=True)
    container.register("asset_storage", _create_asset_storage, singleton=True)

    hook_manager.add_implementation(
        "services_post_register", register_default_assets, priority=50, plugin_name="core_assets"
    )
    hook_manager.add_implementation(
        "collect_api_routers", provide_router, plugin_name="core_assets"
    )
    hook_manager.add_implementation(
        "app_shutdown", close_transport, plugin_name="core_assets"
    )
    logger.info("插件 [core_assets] 注册成功。")
