# context.py
"""
[V1.0] 运行时配置的数据模型
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from config import GlobalConfig


@dataclass
class RunContext:
    """
    封装一次分析运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator 的唯一对象。
    """

    # --- 核心路径 ---
    repo_path: str

    # --- 分析目标 ---
    name: Optional[str] = None  # 未指定时使用当前分支
    base: Optional[str] = None  # 命令行覆盖的基准分支

    # --- AI 参数 ---
    ai: Optional[bool] = None  # None 表示使用项目配置 ai.enabled
    llm_id: Optional[str] = None
    split: bool = False
    continue_after_split: bool = False

    # --- PR 参数 ---
    create_pr: bool = False
    draft: bool = False

    # --- 报告与安全 ---
    skip_security: Optional[bool] = None  # None 视为 True
    detailed: bool = False
    html_report: bool = False

    # --- 标志 ---
    debug: bool = False

    # --- 配置 ---
    project_config: Dict[str, Any] = field(default_factory=dict)
    global_config: GlobalConfig = field(default_factory=GlobalConfig)

    @property
    def needs_github_access(self) -> bool:
        return bool(self.create_pr or self.draft)
