import logging
from typing import List, Optional

from .base import VersionControlSource
from commit_parser import CommitLogParser
from config import GlobalConfig
from errors import GitCommandError
from models import Commit
import git_utils

logger = logging.getLogger(__name__)


class LocalGitDataSource(VersionControlSource):
    """
    [V1.0] 本地 Git 数据源实现。
    通过调用 git 命令行工具分析本地仓库。
    """

    def __init__(
        self,
        repo_path: str,
        global_config: GlobalConfig,
        parser: CommitLogParser,
        base_branch: Optional[str] = None,
    ):
        self.repo_path = repo_path
        self.global_config = global_config
        self.parser = parser
        self.base_branch = base_branch
        self.remote = global_config.REMOTE_NAME

    async def run_command(self, command: str, args: List[str]) -> str:
        return await git_utils.run_git_command(
            [command, *args],
            self.repo_path,
            f"git {command}",
            timeout=self.global_config.GIT_COMMAND_TIMEOUT,
        )

    async def get_current_branch(self) -> str:
        output = await self.run_command("rev-parse", ["--abbrev-ref", "HEAD"])
        return output.strip()

    async def get_default_branch(self) -> str:
        if self.base_branch:
            return self.base_branch

        # 1. origin/HEAD 指向的分支
        try:
            output = await self.run_command(
                "symbolic-ref", ["--short", f"refs/remotes/{self.remote}/HEAD"]
            )
            ref = output.strip()
            if ref.startswith(f"{self.remote}/"):
                ref = ref[len(self.remote) + 1 :]
            if ref:
                self.base_branch = ref
                logger.debug(f"自动探测基准分支 (origin/HEAD): {ref}")
                return ref
        except GitCommandError as e:
            logger.debug(f"无法读取 {self.remote}/HEAD: {e}")

        # 2. 常见默认分支名
        branches = await self.get_local_branches()
        for candidate in self.global_config.DEFAULT_BRANCH_CANDIDATES:
            if candidate in branches or f"{self.remote}/{candidate}" in branches:
                self.base_branch = candidate
                logger.debug(f"自动探测基准分支: {candidate}")
                return candidate

        logger.warning("⚠️ 无法探测基准分支，默认使用 'main'")
        self.base_branch = "main"
        return self.base_branch

    async def get_local_branches(self) -> List[str]:
        output = await self.run_command(
            "branch", ["--all", "--format=%(refname:short)"]
        )
        branches = []
        for line in output.splitlines():
            name = line.strip()
            # 跳过 "origin/HEAD" 与游离 HEAD 的描述行
            if not name or name.startswith("(") or name in (self.remote, f"{self.remote}/HEAD"):
                continue
            branches.append(name)
        return branches

    async def get_commits(self, from_ref: str, to_ref: str) -> List[Commit]:
        output = await self.run_command(
            "log", [self.global_config.GIT_COMMIT_LOG_FORMAT, f"{from_ref}..{to_ref}"]
        )
        return self.parser.parse_commit_log(output)

    async def get_diff(self, from_ref: str, to_ref: str, diff_type: str = "range") -> str:
        if diff_type != "range":
            raise ValueError(f"不支持的 diff 类型: {diff_type}")
        return await self.run_command("diff", [f"{from_ref}..{to_ref}"])

    async def get_remote_url(self) -> str:
        output = await self.run_command("remote", ["get-url", self.remote])
        return output.strip()
