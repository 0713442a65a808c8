# relay/core/loader.py

import importlib
import importlib.resources
import json
import logging
from typing import Dict, List, Optional

from relay.core.contracts import Container, HookManager, PluginRegisterFunc

logger = logging.getLogger(__name__)

PLUGINS_PACKAGE = "relay_plugins"


class PluginLoader:
    """发现 relay_plugins 下带 manifest.json 的子包，按优先级导入并调用其 register_plugin。"""

    def __init__(self, container: Container, hook_manager: HookManager, package: str = PLUGINS_PACKAGE):
        self._container = container
        self._hook_manager = hook_manager
        self._package = package

    def load_plugins(self, enabled: Optional[List[str]] = None) -> List[str]:
        # 此时日志系统可能还未配置 (core_logging 本身就是一个插件)，所以使用 print
        print("\n--- asset-relay 插件系统：开始加载 ---")
        plugins = self._discover_plugins()
        if enabled is not None:
            plugins = [p for p in plugins if p['name'] in enabled]

        if not plugins:
            print("警告：未发现任何插件。")
            return []

        plugins.sort(key=lambda p: (p['manifest'].get('priority', 100), p['name']))
        for i, p in enumerate(plugins):
            print(f"  {i+1}. {p['name']} (优先级: {p['manifest'].get('priority', 100)})")

        self._register_plugins(plugins)
        logger.info("所有插件均已加载并注册完毕。")
        print("--- asset-relay 插件系统：加载完成 ---\n")
        return [p['name'] for p in plugins]

    def _discover_plugins(self) -> List[Dict]:
        discovered = []
        try:
            root = importlib.resources.files(self._package)
        except ModuleNotFoundError:
            return discovered

        for plugin_path in root.iterdir():
            if not plugin_path.is_dir() or plugin_path.name.startswith(('__', '.')):
                continue
            manifest_path = plugin_path / "manifest.json"
            if not manifest_path.is_file():
                continue
            try:
                manifest = json.loads(manifest_path.read_text(encoding='utf-8'))
            except (OSError, ValueError) as e:
                print(f"警告：跳过 manifest 无法解析的插件 '{plugin_path.name}': {e}")
                continue
            discovered.append({
                "name": manifest.get('name', plugin_path.name),
                "manifest": manifest,
                "import_path": f"{self._package}.{plugin_path.name}",
            })
        return discovered

    def _register_plugins(self, plugins: List[Dict]):
        for plugin_info in plugins:
            name = plugin_info['name']
            try:
                module = importlib.import_module(plugin_info['import_path'])
                register_func: PluginRegisterFunc = getattr(module, "register_plugin")
                register_func(self._container, self._hook_manager)
            except Exception as e:
                # 插件之间存在依赖，任何一个注册失败都停止启动
                raise RuntimeError(f"无法加载插件 {name}") from e
