# relay_plugins/core_assets/api.py

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from .contracts import (
    AssetLoadFailedError,
    ConfigurationError,
    TransportError,
    UnsupportedAssetTypeError,
)
from .dependencies import get_asset_storage
from .models import AssetType, DataFormat
from .storage import AssetStorage

logger = logging.getLogger(__name__)

assets_router = APIRouter(
    prefix="/api/assets",
    tags=["Core-Assets"]
)

FORMAT_MEDIA_TYPES = {
    DataFormat.JPG: "image/jpeg",
    DataFormat.JSON: "application/json",
    DataFormat.MP3: "audio/mpeg",
    DataFormat.PNG: "image/png",
    DataFormat.SB2: "application/octet-stream",
    DataFormat.SB3: "application/octet-stream",
    DataFormat.SVG: "image/svg+xml",
    DataFormat.WAV: "audio/x-wav",
}


@assets_router.get("/{asset_type}/{asset_id}")
async def load_asset(
    asset_type: AssetType,
    asset_id: str,
    data_format: Optional[DataFormat] = None,
    storage: AssetStorage = Depends(get_asset_storage)
):
    """按优先级从所有来源加载资产，返回原始字节。"""
    try:
        asset = await storage.load(asset_type, asset_id, data_format)
    except AssetLoadFailedError as e:
        logger.warning(f"Loading {asset_type.value} '{asset_id}' failed on every source: {e}")
        raise HTTPException(
            status_code=502,
            detail={"message": f"Failed to load {asset_type.value} '{asset_id}'.", "errors": [str(err) for err in e.errors]}
        )

    if asset is None:
        raise HTTPException(status_code=404, detail=f"{asset_type.value} '{asset_id}' not found.")
    return Response(content=asset.data, media_type=FORMAT_MEDIA_TYPES.get(asset.data_format, asset_type.content_type))


async def _store(
    storage: AssetStorage,
    asset_type: AssetType,
    data_format: Optional[DataFormat],
    data: bytes,
    asset_id: Optional[str]
) -> Dict[str, Any]:
    if not data:
        raise HTTPException(status_code=400, detail="Request body is empty.")
    try:
        return await storage.store(asset_type, data_format, data, asset_id)
    except (ConfigurationError, UnsupportedAssetTypeError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransportError as e:
        logger.error(f"Backend write failed for {asset_type.value}: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=str(e))


@assets_router.post("/{asset_type}", status_code=201)
async def create_asset(
    asset_type: AssetType,
    request: Request,
    data_format: Optional[DataFormat] = None,
    storage: AssetStorage = Depends(get_asset_storage)
) -> Dict[str, Any]:
    """创建资产。id 由后端分配（对象存储使用内容的 MD5）。"""
    return await _store(storage, asset_type, data_format, await request.body(), None)


@assets_router.put("/{asset_type}/{asset_id}")
async def update_asset(
    asset_type: AssetType,
    asset_id: str,
    request: Request,
    data_format: Optional[DataFormat] = None,
    storage: AssetStorage = Depends(get_asset_storage)
) -> Dict[str, Any]:
    return await _store(storage, asset_type, data_format, await request.body(), asset_id)
