# config_manager.py
"""
[V1.0] 项目级配置管理器
- 负责加载仓库根目录下的 .branchlens.json (或 --config 指定的路径)
- 与 DEFAULT_PROJECT_CONFIG 深度合并，缺失的键使用默认值
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".branchlens.json"

DEFAULT_PROJECT_CONFIG: Dict[str, Any] = {
    "git": {
        # None 表示自动探测 (origin/HEAD -> main/master)
        "base_branch": None,
    },
    "security": {
        "enabled": True,
        "block_on_findings": False,
        "entropy_threshold": None,
    },
    "ai": {
        "enabled": False,
        "provider": None,
    },
    "pr": {
        "template": "pr_body.md.j2",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """递归合并两个字典，override 优先"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_project_config_path(repo_path: str, config_path: Optional[str] = None) -> str:
    if config_path:
        return os.path.abspath(config_path)
    return os.path.join(os.path.abspath(repo_path), PROJECT_CONFIG_FILE)


def load_project_config(
    repo_path: str, config_path: Optional[str] = None
) -> Dict[str, Any]:
    """加载项目配置，文件不存在或格式错误时返回默认配置"""
    path = get_project_config_path(repo_path, config_path)
    if not os.path.exists(path):
        if config_path:
            logger.warning(f"⚠️ 指定的配置文件不存在: {path}，使用默认配置。")
        return copy.deepcopy(DEFAULT_PROJECT_CONFIG)
    try:
        with open(path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"❌ 加载项目配置 {path} 失败: {e}")
        return copy.deepcopy(DEFAULT_PROJECT_CONFIG)

    if not isinstance(user_config, dict):
        logger.error(f"❌ 项目配置 {path} 顶层必须是 JSON 对象，已忽略。")
        return copy.deepcopy(DEFAULT_PROJECT_CONFIG)

    logger.info(f"✅ 已加载项目配置: {path}")
    return _deep_merge(DEFAULT_PROJECT_CONFIG, user_config)


def get_setting(config: Dict[str, Any], dotted_key: str, default: Any = None) -> Any:
    """按 'security.enabled' 形式读取嵌套配置"""
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return default if node is None else node
