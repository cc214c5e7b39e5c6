# analysis_builder.py
from datetime import datetime
from typing import Dict, List, Optional

from models import Commit, FileChange, PRAnalysisResult, PRStats, TimeSpan


def group_files_by_directory(files: List[FileChange]) -> Dict[str, List[str]]:
    """按顶层目录分组 (没有 '/' 的路径以自身为键)，保持输入顺序，不去重"""
    files_by_directory: Dict[str, List[str]] = {}
    for file in files:
        directory = file.path.split("/")[0]
        files_by_directory.setdefault(directory, []).append(file.path)
    return files_by_directory


def build_analysis_result(
    branch_to_analyze: str,
    base_branch: str,
    commits: List[Commit],
    files: List[FileChange],
    diff: str,
    warnings: Optional[List[str]] = None,
) -> PRAnalysisResult:
    """
    汇总提交、文件变更与 diff 文本，生成 PRAnalysisResult。
    commits 按时间倒序排列，所以最早的提交在末尾。
    """
    now = datetime.now().astimezone()
    stats = PRStats(
        total_commits=len(commits),
        files_changed=len(files),
        additions=sum(f.additions for f in files),
        deletions=sum(f.deletions for f in files),
        authors={c.author for c in commits},
        time_span=TimeSpan(
            first_commit=commits[-1].date if commits else now,
            last_commit=commits[0].date if commits else now,
        ),
    )
    return PRAnalysisResult(
        branch=branch_to_analyze,
        base_branch=base_branch,
        commits=list(commits),
        stats=stats,
        warnings=list(warnings or []),
        files_by_directory=group_files_by_directory(files),
        files=list(files),
        diff=diff,
    )
