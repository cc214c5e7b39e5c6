# security_scanner.py
"""
[V1.0] 安全扫描
- 对 diff 中新增的行做正则 + 信息熵检查，发现疑似密钥
- 对变更文件路径做敏感文件匹配 (.env / 私钥 / 证书 ...)
"""
import fnmatch
import logging
import math
import os
import re
from collections import Counter
from typing import Any, Dict, List, Optional

from config import GlobalConfig
from config_manager import get_setting
from errors import SecurityCheckError
from models import PRAnalysisResult, SecurityCheckResult, SecurityFinding

logger = logging.getLogger(__name__)

SECRET_PATTERNS: Dict[str, re.Pattern] = {
    "aws_access_key": re.compile(r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b"),
    "github_token": re.compile(r"\b(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{36,}\b"),
    "github_fine_grained_token": re.compile(r"\bgithub_pat_[A-Za-z0-9_]{50,}\b"),
    "slack_token": re.compile(r"\bxox[baprs]-[A-Za-z0-9-]{10,}\b"),
    "google_api_key": re.compile(r"\bAIza[0-9A-Za-z_\-]{35}\b"),
    "openai_api_key": re.compile(r"\bsk-[A-Za-z0-9_\-]{20,}\b"),
    "private_key": re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY-----"),
    "generic_secret": re.compile(
        r"(?i)\b(?:api[_-]?key|secret|passwd|password|token|access[_-]?key)\b\s*[:=]\s*['\"][^'\"\s]{8,}['\"]"
    ),
}

_TOKEN_RE = re.compile(r"[A-Za-z0-9+/=_\-]{20,}")


def shannon_entropy(value: str) -> float:
    if not value:
        return 0.0
    counts = Counter(value)
    length = len(value)
    return -sum((n / length) * math.log2(n / length) for n in counts.values())


class SecurityScanner:
    def __init__(self, global_config: GlobalConfig, project_config: Dict[str, Any]):
        self.global_config = global_config
        self.project_config = project_config
        self.entropy_threshold: float = get_setting(
            project_config,
            "security.entropy_threshold",
            global_config.DEFAULT_ENTROPY_THRESHOLD,
        )
        self.block_on_findings: bool = get_setting(
            project_config, "security.block_on_findings", False
        )

    def analyze(self, result: PRAnalysisResult) -> SecurityCheckResult:
        logger.info("🛡️ 正在执行安全检查...")
        security_result = SecurityCheckResult(
            secret_findings=self._scan_diff(result.diff),
            file_findings=self._scan_files([f.path for f in result.files]),
        )
        logger.info(
            f"🛡️ 安全检查完成: {len(security_result.secret_findings)} 个疑似密钥, "
            f"{len(security_result.file_findings)} 个敏感文件"
        )
        return security_result

    def _scan_files(self, paths: List[str]) -> List[SecurityFinding]:
        findings = []
        for path in paths:
            basename = os.path.basename(path)
            for pattern in self.global_config.SENSITIVE_FILE_PATTERNS:
                if fnmatch.fnmatch(basename, pattern) or fnmatch.fnmatch(path, pattern):
                    findings.append(
                        SecurityFinding(
                            kind="sensitive_file",
                            path=path,
                            detail=f"匹配敏感文件规则 '{pattern}'",
                        )
                    )
                    break
        return findings

    def _scan_diff(self, diff: str) -> List[SecurityFinding]:
        findings: List[SecurityFinding] = []
        current_path = ""
        new_line_no: Optional[int] = None

        for raw_line in diff.splitlines():
            if raw_line.startswith("+++ "):
                target = raw_line[4:].strip()
                current_path = target[2:] if target.startswith("b/") else target
                continue
            if raw_line.startswith("@@"):
                match = re.search(r"\+(\d+)", raw_line)
                new_line_no = int(match.group(1)) if match else None
                continue
            if raw_line.startswith("+"):
                findings.extend(self._scan_line(raw_line[1:], current_path, new_line_no))
                if new_line_no is not None:
                    new_line_no += 1
            elif not raw_line.startswith("-") and new_line_no is not None:
                new_line_no += 1
        return findings

    def _scan_line(
        self, content: str, path: str, line_no: Optional[int]
    ) -> List[SecurityFinding]:
        for kind, pattern in SECRET_PATTERNS.items():
            if pattern.search(content):
                return [
                    SecurityFinding(
                        kind=kind, path=path, line=line_no, detail=f"疑似 {kind}"
                    )
                ]
        for token in _TOKEN_RE.findall(content):
            if len(token) < self.global_config.MIN_ENTROPY_TOKEN_LENGTH:
                continue
            entropy = shannon_entropy(token)
            if entropy >= self.entropy_threshold:
                return [
                    SecurityFinding(
                        kind="high_entropy_string",
                        path=path,
                        line=line_no,
                        detail=f"高熵字符串 (entropy={entropy:.2f})",
                        severity="medium",
                    )
                ]
        return []

    def handle_issues(self, security_result: SecurityCheckResult) -> None:
        """输出所有发现；配置 security.block_on_findings 时中止流水线"""
        for finding in security_result.file_findings:
            logger.warning(f"⚠️ [敏感文件] {finding.path}: {finding.detail}")
        for finding in security_result.secret_findings:
            location = f"{finding.path}:{finding.line}" if finding.line else finding.path
            logger.warning(f"⚠️ [疑似密钥] {location}: {finding.detail}")

        if self.block_on_findings and security_result.has_issues:
            raise SecurityCheckError(
                f"安全检查发现 {len(security_result.secret_findings)} 个疑似密钥和 "
                f"{len(security_result.file_findings)} 个敏感文件，已中止。"
            )

    def display_summary(self, security_result: SecurityCheckResult) -> None:
        if not security_result.has_issues:
            logger.info("✅ 未发现安全问题")
            return
        logger.warning(
            f"⚠️ 安全检查摘要: {len(security_result.secret_findings)} 个疑似密钥, "
            f"{len(security_result.file_findings)} 个敏感文件"
        )
