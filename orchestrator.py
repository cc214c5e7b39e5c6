# orchestrator.py
"""
[V1.0] 分支分析流水线编排器
状态流转 (可选阶段用 [] 标出):
  INIT -> SERVICES_READY -> CONTROLLERS_READY -> CONTEXT_RESOLVED -> VALIDATED
       -> ANALYZED -> [SECURITY_CHECKED] -> REPORTED -> [AI_PROCESSED | PR_CREATED] -> DONE
每个可选阶段都是 PRAnalysisResult -> PRAnalysisResult 的步骤，
短路条件在 run / _process_ai_features 中以显式分支体现。
"""
import logging
from enum import Enum
from typing import Optional

from ai_advisor import AIAdvisor
from analysis_builder import build_analysis_result
from branch_validator import BranchValidator
from commit_parser import CommitLogParser
from config_manager import get_setting
from context import RunContext
from data_sources.base import PullRequestHost, VersionControlSource
from data_sources.github_api import GitHubAPIDataSource
from data_sources.local_git import LocalGitDataSource
from diff_extractor import DiffExtractor
from errors import BaseBranchAnalysisError, BranchValidationError
from hooks.manager import PluginManager
from models import AnalysisContext, PRAnalysisResult, SecurityCheckResult
from pr_creator import PRCreator
from report_builder import Reporter
from security_scanner import SecurityScanner
from split_handler import SplitHandler

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    INIT = "init"
    SERVICES_READY = "services_ready"
    CONTROLLERS_READY = "controllers_ready"
    CONTEXT_RESOLVED = "context_resolved"
    VALIDATED = "validated"
    ANALYZED = "analyzed"
    SECURITY_CHECKED = "security_checked"
    REPORTED = "reported"
    AI_PROCESSED = "ai_processed"
    PR_CREATED = "pr_created"
    DONE = "done"


class BranchOrchestrator:
    """
    负责执行分支分析的核心业务流程。
    所有协作者都可以通过构造参数注入 (测试时替换为假实现)，未注入的在 SERVICES_READY 阶段创建。
    """

    def __init__(
        self,
        context: RunContext,
        git: Optional[VersionControlSource] = None,
        github: Optional[PullRequestHost] = None,
        security: Optional[SecurityScanner] = None,
        ai: Optional[AIAdvisor] = None,
        reporter: Optional[Reporter] = None,
        split_handler: Optional[SplitHandler] = None,
        pr_creator: Optional[PRCreator] = None,
        plugin_manager: Optional[PluginManager] = None,
    ):
        self.context = context
        self.global_config = context.global_config
        self.project_config = context.project_config

        self.parser = CommitLogParser(self.global_config.COMMIT_RECORD_DELIMITER)
        self.git = git
        self.github = github
        self.security = security
        self.ai = ai
        self.reporter = reporter
        self.split_handler = split_handler
        self.pr_creator = pr_creator
        self.plugin_manager = plugin_manager

        self.validator: Optional[BranchValidator] = None
        self.extractor: Optional[DiffExtractor] = None
        self.is_ai_enabled = False
        self.state = PipelineState.INIT

    def _transition(self, state: PipelineState):
        logger.debug(f"流水线状态: {self.state.value} -> {state.value}")
        self.state = state

    # ------------------------------------------------------------------
    # 初始化
    # ------------------------------------------------------------------
    def _initialize_services(self):
        logger.info("🚀 正在初始化 BranchLens 服务...")
        if self.plugin_manager is None:
            self.plugin_manager = PluginManager(self.context)
            self.plugin_manager.load_plugins()

        if self.git is None:
            base_branch = self.context.base or get_setting(
                self.project_config, "git.base_branch"
            )
            if base_branch:
                logger.debug(f"使用指定的基准分支: {base_branch}")
            self.git = LocalGitDataSource(
                self.context.repo_path, self.global_config, self.parser, base_branch
            )
        if self.github is None:
            self.github = GitHubAPIDataSource(self.global_config, self.git)
        if self.security is None:
            self.security = SecurityScanner(self.global_config, self.project_config)
        if self.reporter is None:
            self.reporter = Reporter(self.context)

        self.is_ai_enabled = (
            self.context.ai
            if self.context.ai is not None
            else bool(get_setting(self.project_config, "ai.enabled", False))
        )
        if self.is_ai_enabled and self.ai is None:
            provider_id = (
                self.context.llm_id
                or get_setting(self.project_config, "ai.provider")
                or self.global_config.DEFAULT_LLM
            )
            try:
                self.ai = AIAdvisor.from_context(self.context, provider_id, self.plugin_manager)
            except (ValueError, ImportError) as e:
                logger.error(f"❌ AI 服务初始化失败: {e}")
                logger.error("   将以 --no-ai 模式继续...")
                self.is_ai_enabled = False

        logger.debug("✅ Services initialized successfully")
        self._transition(PipelineState.SERVICES_READY)

    def _initialize_controllers(self):
        self.validator = BranchValidator(self.git, self.global_config.REMOTE_NAME)
        self.extractor = DiffExtractor(self.git, self.parser, self.global_config)
        if self.split_handler is None:
            self.split_handler = SplitHandler(self.context)
        if self.pr_creator is None:
            self.pr_creator = PRCreator(self.context, self.github, self.plugin_manager)
        self._transition(PipelineState.CONTROLLERS_READY)

    # ------------------------------------------------------------------
    # 主流程
    # ------------------------------------------------------------------
    async def run(self) -> PRAnalysisResult:
        try:
            self._initialize_services()
            self._initialize_controllers()
            self.plugin_manager.trigger("on_start")

            logger.info("🎯 Starting branch analysis...")
            analysis_context = await self._resolve_analysis_context()
            result = await self._perform_initial_analysis(analysis_context)
            self.plugin_manager.trigger("on_analysis_complete", result)

            skip_security = (
                True if self.context.skip_security is None else self.context.skip_security
            )
            security_enabled = bool(get_setting(self.project_config, "security.enabled", False))
            logger.debug(f"Security enabled: {security_enabled}, skipSecurity: {skip_security}")
            if security_enabled and not skip_security:
                security_result = await self._handle_security_checks(result)
                self.security.display_summary(security_result)

            self.reporter.render(result, detailed=self.context.detailed)
            self._transition(PipelineState.REPORTED)

            if self.is_ai_enabled:
                result = await self._process_ai_features(result)
            elif self.context.needs_github_access:
                result = await self._handle_pr_creation(result)

            self._transition(PipelineState.DONE)
            self.plugin_manager.trigger("on_finish", result)
            logger.debug("Branch analysis completed successfully")
            return result
        except Exception as e:
            logger.error(f"❌ Branch analysis failed: {e}")
            logger.debug("Full analysis error details:", exc_info=True)
            raise

    async def _resolve_analysis_context(self) -> AnalysisContext:
        current_branch = await self.git.get_current_branch()
        base_branch = await self.git.get_default_branch()
        branch_to_analyze = self.context.name or current_branch

        logger.debug(
            f"Branch analysis context: current={current_branch}, "
            f"target={branch_to_analyze}, base={base_branch}"
        )
        if branch_to_analyze == base_branch:
            raise BaseBranchAnalysisError(base_branch)

        self._transition(PipelineState.CONTEXT_RESOLVED)
        return AnalysisContext(branch_to_analyze=branch_to_analyze, base_branch=base_branch)

    async def _perform_initial_analysis(self, analysis_context: AnalysisContext) -> PRAnalysisResult:
        branch = analysis_context.branch_to_analyze
        logger.info(f"🔍 Analyzing branch: {branch}")

        validation = await self.validator.validate(branch)
        if not validation.is_valid:
            raise BranchValidationError(validation.errors)
        self._transition(PipelineState.VALIDATED)

        extraction = await self.extractor.extract_diff(analysis_context.base_branch, branch)
        logger.debug(f"Diff extraction finished at tier {extraction.tier} ({extraction.outcome})")

        result = build_analysis_result(
            branch_to_analyze=branch,
            base_branch=analysis_context.base_branch,
            commits=extraction.commits,
            files=extraction.files,
            diff=extraction.diff,
            warnings=validation.warnings + extraction.warnings,
        )
        self._transition(PipelineState.ANALYZED)
        return result

    async def _handle_security_checks(self, result: PRAnalysisResult) -> SecurityCheckResult:
        security_result = self.security.analyze(result)
        if security_result.secret_findings or security_result.file_findings:
            self.security.handle_issues(security_result)
        self._transition(PipelineState.SECURITY_CHECKED)
        return security_result

    # ------------------------------------------------------------------
    # AI / PR 分支
    # ------------------------------------------------------------------
    async def _process_ai_features(self, result: PRAnalysisResult) -> PRAnalysisResult:
        needs_github_access = self.context.needs_github_access
        logger.debug(
            f"AI processing configuration: split={self.context.split}, "
            f"needsGitHubAccess={needs_github_access}"
        )

        if needs_github_access and not await self.pr_creator.validate_github_access():
            logger.warning("⚠️  GitHub access required for PR creation but validation failed")
            return result

        if self.context.split:
            result = await self.ai.handle_split_suggestions(result)
            if result.split_suggestion:
                split_result = await self.split_handler.handle_split_suggestion(result)
                if split_result.skip_further_suggestions:
                    return split_result
                result = split_result

        if result.skip_further_suggestions:
            return result

        result = await self.ai.handle_ai_suggestions(result)
        self._transition(PipelineState.AI_PROCESSED)

        if not needs_github_access:
            return result
        return await self._create_pull_request(result)

    async def _handle_pr_creation(self, result: PRAnalysisResult) -> PRAnalysisResult:
        if not await self.pr_creator.validate_github_access():
            logger.warning("⚠️  GitHub access validation failed, skipping PR creation")
            return result
        return await self._create_pull_request(result)

    async def _create_pull_request(self, result: PRAnalysisResult) -> PRAnalysisResult:
        result = await self.pr_creator.create_pull_request(result, draft=self.context.draft)
        self._transition(PipelineState.PR_CREATED)
        return result
