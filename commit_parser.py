# commit_parser.py
import logging
import re
from datetime import datetime
from typing import List, Optional

from models import Commit

logger = logging.getLogger(__name__)

_HASH_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")


class CommitLogParser:
    """
    解析 `git log --format=%H%n%an%n%aI%n%B%n--END--` 的输出。
    同时被 LocalGitDataSource 与 DiffExtractor 的回退路径使用。
    """

    def __init__(self, delimiter: str = "--END--"):
        self.delimiter = delimiter

    def parse_commit_log(self, log: str) -> List[Commit]:
        """解析 Git 日志输出，保持 git log 的倒序 (最新在前)"""
        commits: List[Commit] = []
        if not log or not log.strip():
            return commits

        for record in self._split_records(log):
            commit = self.parse_record(record)
            if commit:
                commits.append(commit)
        logger.debug(f"成功解析 {len(commits)} 个提交")
        return commits

    def _split_records(self, log: str) -> List[List[str]]:
        records: List[List[str]] = []
        current: List[str] = []
        for line in log.splitlines():
            if line.strip() == self.delimiter:
                records.append(current)
                current = []
            else:
                current.append(line.rstrip())
        # 最后一条记录缺少分隔行时视为被截断，丢弃
        if any(line.strip() for line in current):
            logger.debug("日志末尾存在未结束的记录，已跳过")
        return records

    def parse_record(self, lines: List[str]) -> Optional[Commit]:
        """解析单条提交记录，格式异常时返回 None"""
        # git 会在 %B 之后补一个空行，导致下一条记录以空行开头
        while lines and not lines[0].strip():
            lines = lines[1:]
        if len(lines) < 3:
            logger.debug(f"提交记录字段不足，已跳过: {lines}")
            return None

        commit_hash, author, raw_date = (part.strip() for part in lines[:3])
        if not _HASH_RE.match(commit_hash) or not author:
            logger.debug(f"提交记录头部异常，已跳过: {lines[:3]}")
            return None
        try:
            date = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"无法解析提交时间 '{raw_date}'，已跳过 {commit_hash}")
            return None

        message = "\n".join(lines[3:]).strip()
        return Commit(hash=commit_hash, author=author, date=date, message=message)
