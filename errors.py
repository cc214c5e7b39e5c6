# errors.py
"""
[V1.0] BranchLens 异常体系
所有可被上层 (cli) 识别的业务异常都继承自 BranchLensError。
"""
from typing import List, Optional


class BranchLensError(Exception):
    """BranchLens 所有业务异常的基类"""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class GitCommandError(BranchLensError):
    """git 命令返回非零退出码或执行超时"""

    def __init__(
        self,
        command: List[str],
        returncode: Optional[int],
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "无错误输出"
        super().__init__(
            f"git {' '.join(command)} 失败 (exit={returncode}): {detail}"
        )


class BaseBranchAnalysisError(BranchLensError):
    """待分析分支与基准分支相同"""

    def __init__(self, base_branch: str) -> None:
        self.base_branch = base_branch
        super().__init__(
            f"Cannot analyze the base branch ({base_branch}). "
            "Please create and switch to a feature branch first."
        )


class BranchValidationError(BranchLensError):
    """分支校验未通过"""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Branch validation failed: {', '.join(self.errors)}")


class DiffUnavailableError(BranchLensError):
    """直接 diff 没有返回任何内容"""


class SecurityCheckError(BranchLensError):
    """安全检查发现问题且配置要求阻断"""


class PullRequestError(BranchLensError):
    """创建 Pull Request 失败"""


class AIProviderError(BranchLensError):
    """LLM 供应商初始化或调用失败"""
