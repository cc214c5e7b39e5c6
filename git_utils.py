# git_utils.py
import asyncio
import logging
import re
from typing import List, Optional

from errors import GitCommandError

logger = logging.getLogger(__name__)


async def run_git_command(
    args: List[str],
    repo_path: str,
    context: str = "执行Git命令",
    timeout: int = 30,
) -> str:
    """
    统一的 Git 命令执行函数 (异步)
    - 在 repo_path 下执行 git <args>
    - 非零退出码或超时抛出 GitCommandError，由调用方决定是否降级
    """
    logger.debug(f"在 {repo_path} 中执行命令: git {' '.join(args)}")
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=repo_path,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.communicate()
        logger.debug(f"{context}超时")
        raise GitCommandError(args, None, f"超时 ({timeout}s)")

    if process.returncode != 0:
        stderr_text = stderr.decode("utf-8", errors="replace")
        logger.debug(f"{context}失败: {stderr_text.strip()}")
        raise GitCommandError(args, process.returncode, stderr_text)

    output = stdout.decode("utf-8", errors="replace")
    logger.debug(f"{context}成功，输出 {len(output.splitlines())} 行")
    return output


async def is_git_repository(repo_path: str) -> bool:
    """检查指定路径是否为Git仓库"""
    try:
        output = await run_git_command(
            ["rev-parse", "--is-inside-work-tree"], repo_path, "检查Git仓库"
        )
    except (GitCommandError, OSError):
        return False
    return output.strip() == "true"


def parse_repo_name(url: str) -> Optional[str]:
    """
    从 remote URL 中解析 owner/repo
    支持 https://github.com/owner/repo(.git) 与 git@github.com:owner/repo.git
    """
    url = url.strip()
    if not url:
        return None
    match = re.match(r"^(?:git@|ssh://git@)[^:/]+[:/](.+?)(?:\.git)?/?$", url)
    if not match:
        match = re.match(r"^https?://[^/]+/(.+?)(?:\.git)?/?$", url)
    if not match:
        return None
    path = match.group(1)
    if path.count("/") != 1:
        return None
    return path
