import asyncio
import logging
from typing import Optional

from github import Auth, Github, GithubException
from github.Repository import Repository

from .base import PullRequestHost, VersionControlSource
from config import GlobalConfig
from errors import GitCommandError, PullRequestError
from git_utils import parse_repo_name
from models import PullRequestRef

logger = logging.getLogger(__name__)


class GitHubAPIDataSource(PullRequestHost):
    """
    [V1.0] GitHub 远程访问实现
    使用 PyGithub 访问 origin 指向的仓库。PyGithub 是同步库，调用统一放入线程执行。
    """

    def __init__(self, global_config: GlobalConfig, git: VersionControlSource):
        self.global_config = global_config
        self.git = git
        self.repo: Optional[Repository] = None

        token = self.global_config.GITHUB_TOKEN
        self.client = Github(auth=Auth.Token(token)) if token else None

    async def _resolve_repo_name(self) -> Optional[str]:
        try:
            remote_url = await self.git.get_remote_url()
        except GitCommandError as e:
            logger.error(f"❌ 无法读取 remote URL: {e}")
            return None
        repo_name = parse_repo_name(remote_url)
        if not repo_name:
            logger.error(f"❌ 无法从 URL 解析仓库名称: {remote_url}")
        return repo_name

    async def validate_access(self) -> bool:
        if self.client is None:
            logger.warning("⚠️ 未配置 GITHUB_TOKEN，无法创建 Pull Request。")
            return False

        repo_name = await self._resolve_repo_name()
        if not repo_name:
            return False

        try:
            logger.info(f"🌐 正在连接 GitHub API: {repo_name} ...")
            self.repo = await asyncio.to_thread(self.client.get_repo, repo_name)
            permissions = self.repo.permissions
            if permissions is not None and not permissions.push:
                logger.error(f"❌ 当前 Token 对 {repo_name} 没有 push 权限")
                return False
            logger.info(f"✅ 成功连接远程仓库: {self.repo.full_name}")
            return True
        except GithubException as e:
            message = e.data.get("message", "") if isinstance(e.data, dict) else ""
            logger.error(f"❌ 无法访问 GitHub 仓库: {e.status} {message}")
            return False
        except Exception as e:
            # 网络错误 (连接失败、超时) 同样视为无访问权限
            logger.error(f"❌ 连接 GitHub 失败: {e}")
            return False

    async def create_pull_request(
        self, title: str, body: str, head: str, base: str, draft: bool = False
    ) -> PullRequestRef:
        if self.repo is None and not await self.validate_access():
            raise PullRequestError("GitHub 访问未通过验证，无法创建 Pull Request")

        try:
            pull = await asyncio.to_thread(
                self.repo.create_pull,
                title=title,
                body=body,
                head=head,
                base=base,
                draft=draft,
            )
        except GithubException as e:
            message = e.data.get("message", "") if isinstance(e.data, dict) else str(e)
            raise PullRequestError(f"创建 Pull Request 失败: {e.status} {message}") from e

        logger.info(f"✅ Pull Request 已创建: #{pull.number} {pull.html_url}")
        return PullRequestRef(number=pull.number, url=pull.html_url, draft=bool(pull.draft))
