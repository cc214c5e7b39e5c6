import importlib.util
import inspect
import logging
import os
from typing import Any, Callable, Iterator, List, Optional, Tuple

from context import RunContext
from .base import BasePlugin

logger = logging.getLogger(__name__)

# 通知型钩子：无返回值
NOTIFY_EVENTS = ("on_start", "on_analysis_complete", "on_finish")
# 链式钩子：返回处理后的值
FILTER_EVENTS = ("on_ai_response", "on_pr_body_generated")


class PluginManager:
    """
    [V1.0] 插件管理器
    从 plugins/ 目录加载 BasePlugin 子类，并在流水线各阶段分发钩子。
    插件自身的异常只记录日志，不会中断流水线。
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.plugins: List[BasePlugin] = []

    @property
    def plugin_names(self) -> List[str]:
        return [plugin.name for plugin in self.plugins]

    def load_plugins(self, plugins_dir: Optional[str] = None) -> int:
        """扫描插件目录，返回本次新加载的插件数量"""
        if plugins_dir is None:
            plugins_dir = os.path.join(
                self.context.global_config.SCRIPT_BASE_PATH,
                self.context.global_config.PLUGINS_DIR_NAME,
            )
        if not os.path.isdir(plugins_dir):
            return 0

        before = len(self.plugins)
        for filename in sorted(os.listdir(plugins_dir)):
            if filename.endswith(".py") and not filename.startswith("__"):
                self._load_plugin_file(os.path.join(plugins_dir, filename))

        loaded = len(self.plugins) - before
        if loaded:
            logger.info(f"🔌 [Hooks] 已加载 {loaded} 个插件: {', '.join(self.plugin_names)}")
        return loaded

    def _load_plugin_file(self, filepath: str):
        module_name = f"branchlens_plugin_{os.path.splitext(os.path.basename(filepath))[0]}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, filepath)
            if not spec or not spec.loader:
                return
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            logger.error(f"❌ [Hooks] 加载插件失败 {filepath}: {e}")
            return

        plugin_classes = [
            obj
            for _, obj in inspect.getmembers(module, inspect.isclass)
            if issubclass(obj, BasePlugin)
            and obj is not BasePlugin
            and obj.__module__ == module.__name__
        ]
        if not plugin_classes:
            logger.warning(f"⚠️ [Hooks] 文件 {filepath} 中未发现 BasePlugin 子类")
        for plugin_cls in plugin_classes:
            try:
                self.register(plugin_cls())
            except Exception as e:
                logger.error(f"❌ [Hooks] 实例化插件 {plugin_cls.__name__} 失败: {e}")

    def register(self, plugin: BasePlugin):
        self.plugins.append(plugin)

    def _handlers(self, event_name: str) -> Iterator[Tuple[BasePlugin, Callable]]:
        for plugin in self.plugins:
            handler = getattr(plugin, event_name, None)
            if callable(handler):
                yield plugin, handler

    def trigger(self, event_name: str, *args, **kwargs):
        if event_name not in NOTIFY_EVENTS:
            raise ValueError(f"未知的通知型钩子: {event_name}")
        for plugin, handler in self._handlers(event_name):
            try:
                handler(self.context, *args, **kwargs)
            except Exception as e:
                logger.error(f"❌ [Hooks] 插件 {plugin.name} 执行 {event_name} 失败: {e}")

    def filter(self, event_name: str, initial_value: Any) -> Any:
        """值依次经过所有插件处理；插件返回 None 时保持原值"""
        if event_name not in FILTER_EVENTS:
            raise ValueError(f"未知的链式钩子: {event_name}")
        value = initial_value
        for plugin, handler in self._handlers(event_name):
            try:
                new_value = handler(self.context, value)
            except Exception as e:
                logger.error(f"❌ [Hooks] 插件 {plugin.name} 执行 {event_name} 失败: {e}")
                continue
            if new_value is not None:
                value = new_value
        return value
