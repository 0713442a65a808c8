# relay_plugins/core_assets/dependencies.py

from fastapi import Request
from .storage import AssetStorage

def get_asset_storage(request: Request) -> AssetStorage:
    """FastAPI 依赖注入函数，用于从容器中获取 AssetStorage。"""
    return request.app.state.container.resolve("asset_storage")
