# plugins/redact_secrets.py
import logging
from hooks.base import BasePlugin
from context import RunContext
from security_scanner import SECRET_PATTERNS

logger = logging.getLogger(__name__)


class RedactSecretsPlugin(BasePlugin):
    """
    [插件] PR 正文脱敏
    提交到 GitHub 之前，把正文里疑似密钥的片段替换为 ***。
    """

    name = "RedactSecrets"

    def on_pr_body_generated(self, context: RunContext, body: str) -> str:
        if not body:
            return body

        redacted = body
        count = 0
        for pattern in SECRET_PATTERNS.values():
            redacted, n = pattern.subn("***", redacted)
            count += n

        if count > 0:
            logger.warning(f"🛡️ [RedactSecrets] 已从 PR 正文中移除 {count} 处疑似密钥。")
        return redacted
