"""
[V1.0] 所有 LLM 供应商的抽象基类 (ABC) 与注册表。
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Type, Dict

logger = logging.getLogger(__name__)

# 全局注册表，存储 "provider_id" -> Provider Class 的映射
PROVIDER_REGISTRY: Dict[str, Type["LLMProvider"]] = {}


def register_provider(provider_id: str):
    """
    类装饰器：用于将具体的 Provider 实现类注册到全局注册表中。

    使用示例:
        @register_provider("gemini")
        class GeminiProvider(LLMProvider):
            ...
    """

    def decorator(cls):
        if provider_id in PROVIDER_REGISTRY:
            raise ValueError(
                f"Provider id '{provider_id}' 已经被注册过 ({PROVIDER_REGISTRY[provider_id].__name__})"
            )
        PROVIDER_REGISTRY[provider_id] = cls
        return cls

    return decorator


def load_prompts_from_dir(prompt_dir: str) -> Dict[str, str]:
    """递归加载目录下所有 .txt 提示词，键为相对路径 (不含扩展名)"""
    prompts: Dict[str, str] = {}
    if not os.path.isdir(prompt_dir):
        logger.error(f"❌ 提示词目录未找到: {prompt_dir}")
        return prompts
    for root, _, files in os.walk(prompt_dir):
        for filename in files:
            if not filename.endswith(".txt"):
                continue
            file_path = os.path.join(root, filename)
            key = os.path.splitext(os.path.relpath(file_path, prompt_dir))[0]
            with open(file_path, "r", encoding="utf-8") as f:
                prompts[key.replace(os.path.sep, "/")] = f.read()
    return prompts


class LLMProvider(ABC):
    """
    LLM 供应商的抽象接口。
    返回值均为模型的原始文本回复，结构化解析由 AIAdvisor 负责。
    """

    @abstractmethod
    def suggest_split(self, analysis_report: str) -> Optional[str]:
        """根据分析报告给出拆分建议 (期望 JSON)"""
        pass

    @abstractmethod
    def describe_changes(self, analysis_report: str, diff_content: str) -> Optional[str]:
        """生成 PR 标题与描述 (期望 JSON)"""
        pass
