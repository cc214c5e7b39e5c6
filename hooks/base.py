from abc import ABC
from context import RunContext
from models import PRAnalysisResult


class BasePlugin(ABC):
    """
    [V1.0] 插件基类
    定义所有生命周期钩子。用户自定义插件应继承此类。
    """

    # 插件名称 (建议子类覆盖)
    name: str = "BasePlugin"

    def on_start(self, context: RunContext):
        """
        [钩子] 流水线开始时调用。
        """
        pass

    def on_analysis_complete(self, context: RunContext, result: PRAnalysisResult):
        """
        [钩子] 分支分析完成 (报告输出之前) 调用。
        可用于统计自定义指标或额外检查。
        """
        pass

    def on_ai_response(self, context: RunContext, response: str) -> str:
        """
        [Filter 钩子] 收到 LLM 原始回复后调用。
        **必须返回字符串**。可用于清洗格式或脱敏。
        """
        return response

    def on_pr_body_generated(self, context: RunContext, body: str) -> str:
        """
        [Filter 钩子] PR 正文渲染完成、提交到 GitHub 之前调用。
        """
        return body

    def on_finish(self, context: RunContext, result: PRAnalysisResult):
        """
        [钩子] 流水线正常结束时调用。
        """
        pass
