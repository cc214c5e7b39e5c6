"""
[V1.0] LLMProvider 针对 Google Gemini 的具体实现。
"""
import logging
import os
from typing import Optional

from google import genai
from google.genai import types

from llm.provider_abc import LLMProvider, load_prompts_from_dir, register_provider
from config import GlobalConfig
from errors import AIProviderError

logger = logging.getLogger(__name__)


@register_provider("gemini")
class GeminiProvider(LLMProvider):
    """
    Gemini 策略实现 (genai.Client 模式)。
    """

    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        if not self.global_config.GEMINI_API_KEY:
            logger.error("❌ GEMINI_API_KEY 未设置。请检查您的 .env 文件。")
            raise ValueError("GEMINI_API_KEY 未设置。")

        try:
            self.client = genai.Client(api_key=self.global_config.GEMINI_API_KEY)
        except Exception as e:
            logger.error(f"❌ Gemini (genai.Client) 客户端初始化失败: {e}")
            raise ValueError(f"Gemini (genai.Client) 客户端初始化失败: {e}")

        self.default_model = self.global_config.DEFAULT_MODEL_GEMINI
        self.prompts = load_prompts_from_dir(
            os.path.join(
                self.global_config.SCRIPT_BASE_PATH,
                self.global_config.PROMPTS_DIR_NAME,
            )
        )
        self.system_prompt = self.prompts.get("system", "")
        logger.info(f"✅ GeminiProvider 初始化成功 (已加载 {len(self.prompts)} 个提示)")

    def _generate(self, prompt_key: str, format_kwargs: dict) -> Optional[str]:
        prompt_template = self.prompts.get(prompt_key)
        if not prompt_template:
            logger.error(f"❌ [GeminiProvider] 未找到提示词: '{prompt_key}'")
            return None
        try:
            full_prompt = prompt_template.format(**format_kwargs)
        except KeyError as e:
            logger.error(f"❌ [GeminiProvider] 格式化提示 '{prompt_key}' 失败: 缺少键 {e}")
            return None

        response = self.client.models.generate_content(
            model=f"models/{self.default_model}",
            contents=full_prompt,
            config=types.GenerateContentConfig(
                system_instruction=self.system_prompt or None,
                response_mime_type="application/json",
            ),
        )
        if not response or not response.text:
            raise AIProviderError("Gemini API 调用成功，但回复内容为空")
        return response.text

    def suggest_split(self, analysis_report: str) -> Optional[str]:
        return self._generate("split", {"analysis_report": analysis_report})

    def describe_changes(self, analysis_report: str, diff_content: str) -> Optional[str]:
        return self._generate(
            "describe",
            {"analysis_report": analysis_report, "diff_content": diff_content},
        )
