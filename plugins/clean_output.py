import logging
import re
from hooks.base import BasePlugin
from context import RunContext

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```[a-zA-Z]*\s*\n")


class CleanOutputPlugin(BasePlugin):
    """
    [插件] AI 回复清洗器
    去除 LLM 包裹在回复外层的代码块标记 (```json ... ```)，方便后续解析 JSON。
    """

    name = "CleanAIOutput"

    def on_ai_response(self, context: RunContext, response: str) -> str:
        if not response:
            return response

        cleaned = _FENCE_START.sub("", response.strip(), count=1)
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()

        if cleaned != response:
            logger.debug("🧹 [CleanOutput] 已去除 AI 回复外层的代码块标记")
        return cleaned
