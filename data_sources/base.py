from abc import ABC, abstractmethod
from typing import List
from models import Commit, PullRequestRef


class VersionControlSource(ABC):
    """
    [V1.0] 版本控制访问接口
    分析核心 (BranchValidator / DiffExtractor / Orchestrator) 只依赖这里定义的方法。
    """

    @abstractmethod
    async def get_default_branch(self) -> str:
        """返回基准分支名 (配置值优先，否则自动探测)"""
        pass

    @abstractmethod
    async def get_current_branch(self) -> str:
        pass

    @abstractmethod
    async def get_local_branches(self) -> List[str]:
        """
        返回本地可见的分支名列表。
        远程跟踪分支以 'origin/' 前缀出现在同一列表中。
        """
        pass

    @abstractmethod
    async def get_commits(self, from_ref: str, to_ref: str) -> List[Commit]:
        """返回 from_ref..to_ref 之间的提交 (最新在前)"""
        pass

    @abstractmethod
    async def get_diff(self, from_ref: str, to_ref: str, diff_type: str = "range") -> str:
        """返回 diff 文本；没有差异时返回空字符串"""
        pass

    @abstractmethod
    async def run_command(self, command: str, args: List[str]) -> str:
        """执行任意 git 子命令，非零退出码抛出 GitCommandError"""
        pass

    @abstractmethod
    async def get_remote_url(self) -> str:
        pass


class PullRequestHost(ABC):
    """
    [V1.0] 代码托管平台访问接口 (目前只有 GitHub 实现)
    """

    @abstractmethod
    async def validate_access(self) -> bool:
        pass

    @abstractmethod
    async def create_pull_request(
        self, title: str, body: str, head: str, base: str, draft: bool = False
    ) -> PullRequestRef:
        pass
