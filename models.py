# models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set


@dataclass(frozen=True)
class Commit:
    """Git提交数据模型 (由 CommitLogParser 生成，按时间倒序)"""

    hash: str
    author: str
    date: datetime
    message: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def subject(self) -> str:
        return self.message.splitlines()[0] if self.message else ""

    @property
    def is_merge_commit(self) -> bool:
        return self.message.lower().startswith("merge")


@dataclass
class FileChange:
    """文件变更统计数据模型"""

    path: str
    additions: int = 0
    deletions: int = 0
    status: str = "modified"
    extension: str = ""
    file_type: str = "other"


@dataclass
class BranchValidationResult:
    is_valid: bool = True
    is_up_to_date: bool = True
    exists_locally: bool = False
    exists_remotely: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnalysisContext:
    """一次流水线运行中确定的分析目标"""

    branch_to_analyze: str
    base_branch: str


@dataclass
class TimeSpan:
    first_commit: datetime
    last_commit: datetime


@dataclass
class PRStats:
    total_commits: int
    files_changed: int
    additions: int
    deletions: int
    authors: Set[str]
    time_span: TimeSpan


@dataclass
class SuggestedPR:
    title: str
    description: str = ""
    files: List[str] = field(default_factory=list)
    order: int = 0


@dataclass
class SplitSuggestion:
    """AI 给出的拆分建议"""

    reason: str
    should_split: bool = False
    suggested_prs: List[SuggestedPR] = field(default_factory=list)


@dataclass
class PRDescription:
    title: str
    body: str


@dataclass
class PullRequestRef:
    number: int
    url: str
    draft: bool = False


@dataclass
class PRAnalysisResult:
    """
    贯穿整个流水线的唯一结果对象。
    后续阶段返回新的副本 (dataclasses.replace)，由 Orchestrator 作为新的权威状态。
    """

    branch: str
    base_branch: str
    commits: List[Commit]
    stats: PRStats
    warnings: List[str]
    files_by_directory: Dict[str, List[str]]
    files: List[FileChange]
    diff: str
    split_suggestion: Optional[SplitSuggestion] = None
    skip_further_suggestions: bool = False
    description: Optional[PRDescription] = None
    pull_request: Optional[PullRequestRef] = None


@dataclass
class SecurityFinding:
    kind: str
    path: str
    detail: str
    line: Optional[int] = None
    severity: str = "high"


@dataclass
class SecurityCheckResult:
    secret_findings: List[SecurityFinding] = field(default_factory=list)
    file_findings: List[SecurityFinding] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.secret_findings or self.file_findings)
