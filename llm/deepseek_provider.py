"""
[V1.0] LLMProvider 针对 DeepSeek 的具体实现 (OpenAI 兼容接口)。
"""
import logging
import os
from typing import Optional

from openai import OpenAI

from llm.provider_abc import LLMProvider, load_prompts_from_dir, register_provider
from config import GlobalConfig
from errors import AIProviderError

logger = logging.getLogger(__name__)


@register_provider("deepseek")
class DeepSeekProvider(LLMProvider):
    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        if not self.global_config.DEEPSEEK_API_KEY:
            logger.error("❌ DEEPSEEK_API_KEY 未设置。请检查您的 .env 文件。")
            raise ValueError("DEEPSEEK_API_KEY 未设置。")

        self.client = OpenAI(
            api_key=self.global_config.DEEPSEEK_API_KEY,
            base_url=self.global_config.DEEPSEEK_BASE_URL,
        )
        self.default_model = self.global_config.DEFAULT_MODEL_DEEPSEEK
        self.prompts = load_prompts_from_dir(
            os.path.join(
                self.global_config.SCRIPT_BASE_PATH,
                self.global_config.PROMPTS_DIR_NAME,
            )
        )
        # DeepSeek 需要一个 System Prompt
        self.system_prompt = self.prompts.get("system", "You are a helpful assistant.")
        logger.info(f"✅ DeepSeekProvider 初始化成功 (已加载 {len(self.prompts)} 个提示)")

    def _generate(self, prompt_key: str, format_kwargs: dict) -> Optional[str]:
        user_prompt_template = self.prompts.get(prompt_key)
        if not user_prompt_template:
            logger.error(f"❌ [DeepSeekProvider] 未找到 User 提示词: '{prompt_key}'")
            return None

        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": user_prompt_template.format(**format_kwargs)},
        ]
        response = self.client.chat.completions.create(
            model=self.default_model,
            messages=messages,
            response_format={"type": "json_object"},
        )
        if response.choices and response.choices[0].message.content:
            return response.choices[0].message.content.strip()
        raise AIProviderError("未从 DeepSeek API 收到内容")

    def suggest_split(self, analysis_report: str) -> Optional[str]:
        return self._generate("split", {"analysis_report": analysis_report})

    def describe_changes(self, analysis_report: str, diff_content: str) -> Optional[str]:
        return self._generate(
            "describe",
            {"analysis_report": analysis_report, "diff_content": diff_content},
        )
