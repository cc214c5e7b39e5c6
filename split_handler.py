# split_handler.py
import dataclasses
import logging

from context import RunContext
from models import PRAnalysisResult

logger = logging.getLogger(__name__)


class SplitHandler:
    """
    展示 AI 拆分建议。
    建议拆分且未指定 --continue-after-split 时，标记 skip_further_suggestions，
    流水线随即结束，不再生成描述或创建 PR。
    """

    def __init__(self, context: RunContext):
        self.context = context

    async def handle_split_suggestion(self, result: PRAnalysisResult) -> PRAnalysisResult:
        suggestion = result.split_suggestion
        if suggestion is None:
            return result

        if not suggestion.should_split:
            logger.info(f"✅ AI 认为无需拆分: {suggestion.reason or '-'}")
            return result

        logger.info(f"✂️ AI 建议将 {result.branch} 拆分为 {len(suggestion.suggested_prs)} 个 PR")
        if suggestion.reason:
            logger.info(f"   原因: {suggestion.reason}")
        for pr in suggestion.suggested_prs:
            logger.info(f"   [{pr.order}] {pr.title} ({len(pr.files)} 个文件)")
            if pr.description:
                logger.info(f"       {pr.description}")
            for path in pr.files:
                logger.info(f"       - {path}")

        if self.context.continue_after_split:
            logger.info("ℹ️ 已指定 --continue-after-split，继续后续流程。")
            return result

        logger.info("ℹ️ 请按建议拆分分支后重新运行；本次不再生成描述或创建 PR。")
        return dataclasses.replace(result, skip_further_suggestions=True)
