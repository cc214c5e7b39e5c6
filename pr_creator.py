# pr_creator.py
import dataclasses
import logging
import re
from typing import Optional

from jinja2 import TemplateNotFound

from config_manager import get_setting
from context import RunContext
from data_sources.base import PullRequestHost
from hooks.manager import PluginManager
from models import PRAnalysisResult
import report_builder

logger = logging.getLogger(__name__)


def title_from_branch(branch: str) -> str:
    """feature/add-login_page -> Add login page"""
    name = branch.rsplit("/", 1)[-1]
    words = re.sub(r"[-_]+", " ", name).strip()
    return words[:1].upper() + words[1:] if words else branch


class PRCreator:
    def __init__(
        self,
        context: RunContext,
        github: PullRequestHost,
        plugin_manager: Optional[PluginManager] = None,
    ):
        self.context = context
        self.github = github
        self.plugin_manager = plugin_manager

    async def validate_github_access(self) -> bool:
        has_access = await self.github.validate_access()
        if not has_access:
            logger.warning("⚠️ GitHub 访问验证失败")
        return has_access

    def render_body(self, result: PRAnalysisResult) -> str:
        template_name = get_setting(
            self.context.project_config, "pr.template", "pr_body.md.j2"
        )
        env = report_builder.get_template_environment(self.context.global_config)
        try:
            template = env.get_template(template_name)
        except TemplateNotFound:
            logger.error(f"❌ 未找到 PR 模板 '{template_name}'，使用默认模板")
            template = env.get_template("pr_body.md.j2")

        description = result.description.body if result.description else ""
        body = template.render(result=result, description=description).strip() + "\n"
        if self.plugin_manager:
            body = self.plugin_manager.filter("on_pr_body_generated", body)
        return body

    async def create_pull_request(
        self, result: PRAnalysisResult, draft: bool = False
    ) -> PRAnalysisResult:
        title = (
            result.description.title
            if result.description and result.description.title
            else title_from_branch(result.branch)
        )
        body = self.render_body(result)

        logger.info(f"🚀 正在创建{'草稿 ' if draft else ''}Pull Request: {title}")
        pull_request = await self.github.create_pull_request(
            title=title,
            body=body,
            head=result.branch,
            base=result.base_branch,
            draft=draft,
        )
        return dataclasses.replace(result, pull_request=pull_request)
