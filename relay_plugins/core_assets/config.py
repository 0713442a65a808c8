# relay_plugins/core_assets/config.py

import logging
import os
from typing import Any, Dict, List, Optional

from .clients import HttpBucketClient, LocalDirectoryClient
from .models import AssetType
from .storage import AssetStorage

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")
REMOTE_TYPES = [t for t in AssetType if t is not AssetType.PROJECT]


def _split_ids(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def _parse_types(value: Optional[str]) -> List[AssetType]:
    if not value:
        return list(REMOTE_TYPES)
    return [AssetType(name) for name in _split_ids(value)]


def parse_web_sources_from_env() -> Dict[str, Dict[str, Any]]:
    """
    解析 RELAY_WEB_SOURCES 声明的 Web 来源。每个 id 读取：
    SOURCE_<ID>_URL / _TYPES / _CREATE_URL / _UPDATE_URL
    """
    configs = {}
    for source_id in _split_ids(os.getenv("RELAY_WEB_SOURCES", "")):
        prefix = f"SOURCE_{source_id.upper()}_"
        url = os.getenv(f"{prefix}URL")
        if not url:
            logger.warning(f"Web source '{source_id}' has no {prefix}URL; skipping it.")
            continue
        configs[source_id] = {
            "url": url,
            "types": _parse_types(os.getenv(f"{prefix}TYPES")),
            "create_url": os.getenv(f"{prefix}CREATE_URL"),
            "update_url": os.getenv(f"{prefix}UPDATE_URL"),
        }
    return configs


def parse_bucket_sources_from_env() -> Dict[str, Dict[str, Any]]:
    """
    解析 RELAY_BUCKET_SOURCES 声明的 HTTP 对象桶。每个 id 读取：
    BUCKET_<ID>_URL / _TYPES / _PREFIX / _WRITABLE
    """
    configs = {}
    for bucket_id in _split_ids(os.getenv("RELAY_BUCKET_SOURCES", "")):
        prefix = f"BUCKET_{bucket_id.upper()}_"
        url = os.getenv(f"{prefix}URL")
        if not url:
            logger.warning(f"Bucket '{bucket_id}' has no {prefix}URL; skipping it.")
            continue
        writable = os.getenv(f"{prefix}WRITABLE", "false").lower() in TRUE_VALUES
        configs[bucket_id] = {
            "url": url,
            "types": _parse_types(os.getenv(f"{prefix}TYPES")),
            "path_prefix": os.getenv(f"{prefix}PREFIX", ""),
            "writable": writable,
        }
    return configs


def http_timeout_from_env() -> float:
    return float(os.getenv("RELAY_HTTP_TIMEOUT", "30"))


def configure_storage_from_env(storage: AssetStorage) -> AssetStorage:
    """按环境变量向 storage 注册所有来源。注册顺序即同类来源内的尝试顺序。"""
    local_dir = os.getenv("RELAY_LOCAL_STORE_DIR")
    if local_dir:
        storage.add_object_store(REMOTE_TYPES, LocalDirectoryClient(local_dir), create=True, update=True)
        logger.info(f"Registered local object store at '{local_dir}'.")

    for bucket_id, cfg in parse_bucket_sources_from_env().items():
        client = HttpBucketClient(storage.fetch_tool, cfg["url"])
        storage.add_object_store(
            cfg["types"], client,
            path_prefix=cfg["path_prefix"],
            create=cfg["writable"],
            update=cfg["writable"],
        )
        logger.info(f"Registered bucket source '{bucket_id}' ({cfg['url']}).")

    for source_id, cfg in parse_web_sources_from_env().items():
        storage.add_web_store(cfg["types"], cfg["url"], cfg["create_url"], cfg["update_url"])
        logger.info(f"Registered web source '{source_id}' ({cfg['url']}).")

    return storage
