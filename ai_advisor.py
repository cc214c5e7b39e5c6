# ai_advisor.py
import asyncio
import dataclasses
import importlib
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

from config import GlobalConfig
from context import RunContext
from hooks.manager import PluginManager
from llm.provider_abc import LLMProvider, PROVIDER_REGISTRY
from models import PRAnalysisResult, PRDescription, SplitSuggestion, SuggestedPR
import report_builder

logger = logging.getLogger(__name__)


# --- 动态加载器 ---
def load_providers_dynamically(script_base_path: str):
    """
    扫描 llm/ 目录下的所有 *_provider.py 并导入。
    这将触发 @register_provider 装饰器，将类注册到 PROVIDER_REGISTRY 中。
    """
    llm_dir = os.path.join(script_base_path, "llm")
    if not os.path.exists(llm_dir):
        logger.warning(f"⚠️ 未找到 llm 目录: {llm_dir}")
        return

    for filename in sorted(os.listdir(llm_dir)):
        if not filename.endswith("_provider.py"):
            continue
        module_name = f"llm.{filename[:-3]}"
        try:
            importlib.import_module(module_name)
        except Exception as e:
            # 单个供应商依赖缺失不影响其他供应商
            logger.error(f"❌ 动态加载模块 {module_name} 失败: {e}")


def get_llm_provider(provider_id: str, global_config: GlobalConfig) -> LLMProvider:
    """
    工厂函数：基于 Registry Pattern，从 PROVIDER_REGISTRY 查找并实例化供应商。
    """
    logger.info(f"ℹ️ 正在初始化 LLM 供应商: {provider_id}")

    load_providers_dynamically(global_config.SCRIPT_BASE_PATH)

    if not global_config.is_provider_configured(provider_id):
        logger.error(f"❌ 供应商 '{provider_id}' 未配置 API Key。")
        raise ValueError(
            f"供应商 '{provider_id}' 未配置。 "
            f"请在您的 .env 文件中设置相应的 API 密钥。"
        )

    if provider_id not in PROVIDER_REGISTRY:
        logger.error(f"❌ 未知的 LLM 供应商: '{provider_id}'")
        logger.error(f"   可用供应商: {list(PROVIDER_REGISTRY.keys())}")
        raise ValueError(f"未知的 LLM 供应商: {provider_id}")

    provider_class = PROVIDER_REGISTRY[provider_id]
    return provider_class(global_config)


# --- JSON 提取 ---
def _largest_braced_region(text: str) -> Optional[str]:
    stack: List[int] = []
    best = None
    for i, ch in enumerate(text):
        if ch == "{":
            stack.append(i)
        elif ch == "}" and stack:
            start = stack.pop()
            if best is None or i + 1 - start > len(best):
                best = text[start : i + 1]
    return best


def extract_json_object(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    """从 LLM 回复中提取第一个可解析的 JSON 对象，失败返回 None"""
    if not raw_text:
        return None
    text = re.sub(r"```[a-zA-Z]*\n|```", "", raw_text)
    candidates = [text.strip()]
    region = _largest_braced_region(text)
    if region and region not in candidates:
        candidates.insert(0, region)
    for candidate in candidates:
        try:
            data = json.loads(re.sub(r",\s*([}\]])", r"\1", candidate))
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _parse_order(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_split_suggestion(data: Dict[str, Any]) -> Optional[SplitSuggestion]:
    raw_prs = data.get("suggested_prs") or []
    if not isinstance(raw_prs, list):
        return None
    suggested_prs = []
    for index, item in enumerate(raw_prs, start=1):
        if not isinstance(item, dict) or not item.get("title"):
            continue
        suggested_prs.append(
            SuggestedPR(
                title=str(item["title"]),
                description=str(item.get("description", "")),
                files=[str(f) for f in item.get("files") or []],
                order=_parse_order(item.get("order"), index),
            )
        )
    suggested_prs.sort(key=lambda pr: pr.order)
    return SplitSuggestion(
        reason=str(data.get("reason", "")),
        should_split=bool(data.get("should_split")) and len(suggested_prs) > 1,
        suggested_prs=suggested_prs,
    )


class AIAdvisor:
    """
    封装所有对 LLM 的调用。
    - 供应商调用是同步的，统一放到工作线程中执行
    - 供应商异常与无法解析的回复只记录日志，返回原结果
    """

    def __init__(
        self,
        context: RunContext,
        provider: LLMProvider,
        plugin_manager: Optional[PluginManager] = None,
    ):
        self.context = context
        self.global_config = context.global_config
        self.provider = provider
        self.plugin_manager = plugin_manager
        logger.info(
            f"✅ 🤖 AI 服务已成功初始化 (Provider: {self.provider.__class__.__name__})"
        )

    @classmethod
    def from_context(
        cls, context: RunContext, provider_id: str, plugin_manager: Optional[PluginManager] = None
    ) -> "AIAdvisor":
        provider = get_llm_provider(provider_id, context.global_config)
        return cls(context, provider, plugin_manager)

    def _clean(self, response: Optional[str]) -> Optional[str]:
        if response and self.plugin_manager:
            return self.plugin_manager.filter("on_ai_response", response)
        return response

    def _truncate_diff(self, diff: str) -> str:
        limit = self.global_config.AI_MAX_DIFF_CHARS
        if len(diff) <= limit:
            return diff
        logger.warning(f"⚠️ Diff 内容过长 ({len(diff)} chars)，截断至 {limit} 字符后提交给 AI。")
        return diff[:limit] + "\n... (diff truncated)"

    async def handle_split_suggestions(self, result: PRAnalysisResult) -> PRAnalysisResult:
        logger.info("🤖 正在请求拆分建议...")
        analysis_report = report_builder.generate_text_report(result, detailed=True)
        try:
            response = await asyncio.to_thread(self.provider.suggest_split, analysis_report)
        except Exception as e:
            logger.error(f"❌ suggest_split 失败: {e}")
            return result

        data = extract_json_object(self._clean(response))
        if data is None:
            logger.warning("⚠️ 无法解析 AI 返回的拆分建议，已忽略。")
            return result

        suggestion = parse_split_suggestion(data)
        if suggestion is None:
            logger.warning("⚠️ AI 返回的拆分建议格式不正确，已忽略。")
            return result
        return dataclasses.replace(result, split_suggestion=suggestion)

    async def handle_ai_suggestions(self, result: PRAnalysisResult) -> PRAnalysisResult:
        logger.info("🤖 正在生成 PR 描述建议...")
        analysis_report = report_builder.generate_text_report(result, detailed=True)
        diff_content = self._truncate_diff(result.diff)
        try:
            response = await asyncio.to_thread(
                self.provider.describe_changes, analysis_report, diff_content
            )
        except Exception as e:
            logger.error(f"❌ describe_changes 失败: {e}")
            return result

        response = self._clean(response)
        if not response:
            logger.warning("⚠️ AI 未返回任何内容。")
            return result

        data = extract_json_object(response)
        if data and data.get("title"):
            description = PRDescription(
                title=str(data["title"]).strip(),
                body=str(data.get("description", "")).strip(),
            )
        else:
            # 回复不是 JSON 时，整段作为正文
            description = PRDescription(title="", body=response.strip())
        logger.info("✅ AI 描述生成完成")
        return dataclasses.replace(result, description=description)
