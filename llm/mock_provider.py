"""
[测试样例] 一个模拟的 LLM 供应商
不进行任何网络调用，根据报告内容返回固定结构的 JSON，便于离线演示与测试。
"""
import json
import logging
import re
from typing import Optional
from llm.provider_abc import LLMProvider, register_provider
from config import GlobalConfig

logger = logging.getLogger(__name__)


@register_provider("mock")
class MockProvider(LLMProvider):
    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        logger.info("✅ MockProvider 已初始化 (无需 API Key)")

    def suggest_split(self, analysis_report: str) -> Optional[str]:
        match = re.search(r"Files changed:\s*(\d+)", analysis_report)
        files_changed = int(match.group(1)) if match else 0
        return json.dumps(
            {
                "should_split": files_changed > 20,
                "reason": f"[Mock] 共 {files_changed} 个文件变更",
                "suggested_prs": [],
            },
            ensure_ascii=False,
        )

    def describe_changes(self, analysis_report: str, diff_content: str) -> Optional[str]:
        match = re.search(r"Branch:\s*(\S+)", analysis_report)
        branch = match.group(1) if match else "branch"
        return "```json\n" + json.dumps(
            {
                "title": f"[Mock] Changes from {branch}",
                "description": f"[Mock] Diff 长度 {len(diff_content)} 字符",
            },
            ensure_ascii=False,
        ) + "\n```"
