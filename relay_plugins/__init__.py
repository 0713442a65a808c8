# relay_plugins/__init__.py
# 每个带 manifest.json 的子包都是一个插件，由 relay.core.loader.PluginLoader 发现。
