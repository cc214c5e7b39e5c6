# diff_extractor.py
"""
[V1.0] 分支 diff 提取器
按层级逐级降级：
  1. base..target 提交列表
  2. (提交为空时) 目标分支最近的非 merge 提交，命中则直接返回，不取 diff
  3. base..target 直接 diff (空 diff 视为失败)
  4. base target --numstat 文件统计 (失败降级为空列表)
  5. (第 3 层失败时) origin/base...target 的 numstat，有文件变更时再取 diff
任何一层失败都只记录 debug 日志，extract_diff 本身不抛异常。
"""
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from commit_parser import CommitLogParser
from config import GlobalConfig
from data_sources.base import VersionControlSource
from errors import DiffUnavailableError
from models import Commit, FileChange
from utils import get_file_type

logger = logging.getLogger(__name__)

TIER_COMMIT_LOG_FALLBACK = 2
TIER_DIRECT_DIFF = 3
TIER_REMOTE_DIFF = 5


@dataclass
class DiffExtraction:
    """带层级标记的提取结果，tier 表示最终提供 diff/文件数据的层级"""

    tier: int
    outcome: str
    commits: List[Commit] = field(default_factory=list)
    files: List[FileChange] = field(default_factory=list)
    diff: str = ""
    warnings: List[str] = field(default_factory=list)


def _to_int(value: str) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def parse_numstat_line(line: str) -> FileChange:
    """
    解析一行 `git diff --numstat` 输出。
    前两个字段为新增/删除行数 (二进制文件为 '-'，按 0 处理)，其余字段拼回路径。
    """
    fields = line.split()
    additions = fields[0] if len(fields) > 0 else "0"
    deletions = fields[1] if len(fields) > 1 else "0"
    path = " ".join(fields[2:])
    return FileChange(
        path=path,
        status="modified",
        additions=_to_int(additions),
        deletions=_to_int(deletions),
        **get_file_type(path),
    )


def parse_numstat(output: str) -> List[FileChange]:
    return [parse_numstat_line(line) for line in output.splitlines() if line.strip()]


class DiffExtractor:
    def __init__(
        self,
        git: VersionControlSource,
        parser: CommitLogParser,
        global_config: GlobalConfig,
    ):
        self.git = git
        self.parser = parser
        self.global_config = global_config
        self.remote = global_config.REMOTE_NAME

    async def extract_diff(self, base_branch: str, target_branch: str) -> DiffExtraction:
        warnings: List[str] = []

        # --- 1. 提交列表 ---
        commits = await self._fetch_commits(base_branch, target_branch)
        logger.debug(
            f"Found {len(commits)} commits between {base_branch} and {target_branch}"
        )

        if not commits:
            message = (
                f"No commits found between {base_branch} and {target_branch}. This could mean:\n"
                f"  1. {base_branch} branch doesn't exist\n"
                f"  2. There are no differences between the branches\n"
                f"  3. The branches have no common ancestry"
            )
            logger.warning(f"⚠️ {message}")
            warnings.append(message.splitlines()[0])

            # --- 2. 目标分支提交日志回退 ---
            fallback_commits = await self._fetch_recent_commits(target_branch)
            if fallback_commits:
                logger.info(
                    f"ℹ️ Using the last {len(fallback_commits)} commits from {target_branch} instead"
                )
                return DiffExtraction(
                    tier=TIER_COMMIT_LOG_FALLBACK,
                    outcome="commit-log-fallback",
                    commits=fallback_commits,
                    files=[],
                    diff="",
                    warnings=warnings,
                )

        # --- 3 & 4. 直接 diff + numstat ---
        try:
            diff, files = await self._direct_diff(base_branch, target_branch)
            return DiffExtraction(
                tier=TIER_DIRECT_DIFF,
                outcome="direct-diff",
                commits=commits,
                files=files,
                diff=diff,
                warnings=warnings,
            )
        except Exception as e:
            logger.debug(f"Failed to get direct diff, trying with {self.remote}/: {e}")

        # --- 5. origin/base...target ---
        diff, files = await self._remote_diff(base_branch, target_branch)
        return DiffExtraction(
            tier=TIER_REMOTE_DIFF,
            outcome="remote-diff" if diff or files else "empty",
            commits=commits,
            files=files,
            diff=diff,
            warnings=warnings,
        )

    async def _fetch_commits(self, base_branch: str, target_branch: str) -> List[Commit]:
        try:
            return await self.git.get_commits(base_branch, target_branch)
        except Exception as e:
            logger.debug(f"Failed to list commits between branches: {e}")
            return []

    async def _fetch_recent_commits(self, target_branch: str) -> List[Commit]:
        try:
            log = await self.git.run_command(
                "log",
                [
                    self.global_config.GIT_COMMIT_LOG_FORMAT,
                    target_branch,
                    f"--max-count={self.global_config.FALLBACK_COMMIT_LIMIT}",
                    "--no-merges",
                ],
            )
        except Exception as e:
            logger.debug(f"Failed to get branch commits as fallback: {e}")
            return []
        if not log.strip():
            return []
        return self.parser.parse_commit_log(log)

    async def _direct_diff(
        self, base_branch: str, target_branch: str
    ) -> Tuple[str, List[FileChange]]:
        diff = await self.git.get_diff(base_branch, target_branch, diff_type="range")
        if not diff:
            raise DiffUnavailableError("Empty diff result")

        stats = await self._numstat([base_branch, target_branch, "--numstat"])
        return diff, parse_numstat(stats) if stats else []

    async def _remote_diff(
        self, base_branch: str, target_branch: str
    ) -> Tuple[str, List[FileChange]]:
        range_spec = f"{self.remote}/{base_branch}...{target_branch}"
        stats = await self._numstat([range_spec, "--numstat"])
        if not stats:
            return "", []
        files = parse_numstat(stats)

        diff = ""
        try:
            diff = await self.git.run_command("diff", [range_spec])
        except Exception as e:
            logger.debug(f"All diff methods failed: {e}")
        return diff, files

    async def _numstat(self, args: List[str]) -> str:
        try:
            return await self.git.run_command("diff", args)
        except Exception as e:
            logger.debug(f"Failed to get numstat diff ({' '.join(args)}): {e}")
            return ""
