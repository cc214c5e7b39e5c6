import copy
import dataclasses
import unittest
from datetime import datetime, timezone
from unittest.mock import ANY, AsyncMock, MagicMock

from config import GlobalConfig
from config_manager import DEFAULT_PROJECT_CONFIG
from context import RunContext
from errors import BaseBranchAnalysisError, BranchValidationError, SecurityCheckError
from models import (
    Commit,
    PRDescription,
    PullRequestRef,
    SecurityCheckResult,
    SecurityFinding,
    SplitSuggestion,
    SuggestedPR,
)
from orchestrator import BranchOrchestrator, PipelineState
from split_handler import SplitHandler

COMMIT = Commit(
    hash="e" * 40,
    author="Alice",
    date=datetime(2024, 3, 1, tzinfo=timezone.utc),
    message="feat: add login",
)


def _make_context(**overrides) -> RunContext:
    values = dict(
        repo_path="/tmp/repo",
        project_config=copy.deepcopy(DEFAULT_PROJECT_CONFIG),
        global_config=GlobalConfig(),
    )
    values.update(overrides)
    return RunContext(**values)


def _make_git(current="feature", base="main", branches=None):
    git = AsyncMock()
    git.get_current_branch.return_value = current
    git.get_default_branch.return_value = base
    git.get_local_branches.return_value = branches if branches is not None else ["main", "feature"]
    git.get_commits.return_value = [COMMIT]
    git.get_diff.return_value = "diff --git a/src/a.py b/src/a.py\n+print('hi')\n"
    git.run_command.return_value = "1\t0\tsrc/a.py\n"
    return git


def _with_split(should_split):
    def handle(result):
        return dataclasses.replace(
            result,
            split_suggestion=SplitSuggestion(
                reason="too big",
                should_split=should_split,
                suggested_prs=[SuggestedPR(title="one", order=1), SuggestedPR(title="two", order=2)],
            ),
        )

    return handle


def _with_description(result):
    return dataclasses.replace(result, description=PRDescription(title="Add login", body="Body"))


def _with_pull_request(result, draft=False):
    return dataclasses.replace(
        result, pull_request=PullRequestRef(number=7, url="https://example.com/pr/7", draft=draft)
    )


class TestBranchOrchestrator(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.git = _make_git()
        self.security = MagicMock()
        self.security.analyze.return_value = SecurityCheckResult()
        self.reporter = MagicMock()
        self.ai = AsyncMock()
        self.ai.handle_split_suggestions.side_effect = _with_split(True)
        self.ai.handle_ai_suggestions.side_effect = _with_description
        self.pr_creator = AsyncMock()
        self.pr_creator.validate_github_access.return_value = True
        self.pr_creator.create_pull_request.side_effect = _with_pull_request
        self.plugin_manager = MagicMock()

    def _orchestrator(self, context, **overrides):
        collaborators = dict(
            git=self.git,
            github=AsyncMock(),
            security=self.security,
            ai=self.ai,
            reporter=self.reporter,
            pr_creator=self.pr_creator,
            plugin_manager=self.plugin_manager,
        )
        collaborators.update(overrides)
        return BranchOrchestrator(context, **collaborators)

    async def test_base_branch_is_rejected_before_validation(self):
        self.git.get_current_branch.return_value = "main"
        orchestrator = self._orchestrator(_make_context(ai=False))

        with self.assertRaises(BaseBranchAnalysisError) as ctx:
            await orchestrator.run()

        self.assertIn("Cannot analyze the base branch (main)", str(ctx.exception))
        self.git.get_local_branches.assert_not_awaited()
        self.git.get_commits.assert_not_awaited()

    async def test_validation_failure_stops_pipeline(self):
        self.git.get_local_branches.return_value = ["main"]
        orchestrator = self._orchestrator(_make_context(ai=False))

        with self.assertRaises(BranchValidationError) as ctx:
            await orchestrator.run()

        self.assertIn("Branch 'feature' not found locally or remotely", str(ctx.exception))
        self.git.get_commits.assert_not_awaited()
        self.reporter.render.assert_not_called()

    async def test_report_only_run(self):
        orchestrator = self._orchestrator(_make_context(ai=False))

        result = await orchestrator.run()

        self.assertEqual(result.branch, "feature")
        self.assertEqual(result.base_branch, "main")
        self.assertEqual(result.stats.total_commits, 1)
        self.assertEqual(result.stats.additions, 1)
        self.reporter.render.assert_called_once()
        self.security.analyze.assert_not_called()
        self.ai.handle_ai_suggestions.assert_not_awaited()
        self.pr_creator.create_pull_request.assert_not_awaited()
        self.assertEqual(orchestrator.state, PipelineState.DONE)
        self.plugin_manager.trigger.assert_any_call("on_analysis_complete", result)
        self.plugin_manager.trigger.assert_any_call("on_finish", result)

    async def test_explicit_name_overrides_current_branch(self):
        self.git.get_local_branches.return_value = ["main", "feature", "other"]
        orchestrator = self._orchestrator(_make_context(ai=False, name="other"))

        result = await orchestrator.run()

        self.assertEqual(result.branch, "other")
        self.git.get_commits.assert_awaited_once_with("main", "other")

    async def test_security_runs_only_when_requested(self):
        orchestrator = self._orchestrator(_make_context(ai=False, skip_security=False))
        await orchestrator.run()
        self.security.analyze.assert_called_once()
        self.security.display_summary.assert_called_once()

    async def test_security_disabled_in_project_config(self):
        context = _make_context(ai=False, skip_security=False)
        context.project_config["security"]["enabled"] = False
        await self._orchestrator(context).run()
        self.security.analyze.assert_not_called()

    async def test_security_findings_are_handled(self):
        findings = SecurityCheckResult(
            file_findings=[SecurityFinding(kind="sensitive_file", path=".env", detail="env")]
        )
        self.security.analyze.return_value = findings
        orchestrator = self._orchestrator(_make_context(ai=False, skip_security=False))

        result = await orchestrator.run()

        self.security.handle_issues.assert_called_once_with(findings)
        self.security.display_summary.assert_called_once_with(findings)
        self.reporter.render.assert_called_once()
        self.assertEqual(result.branch, "feature")

    async def test_blocking_security_findings_abort(self):
        self.security.analyze.return_value = SecurityCheckResult(
            file_findings=[SecurityFinding(kind="sensitive_file", path=".env", detail="env")]
        )
        self.security.handle_issues.side_effect = SecurityCheckError("blocked")
        orchestrator = self._orchestrator(_make_context(ai=False, skip_security=False))

        with self.assertRaises(SecurityCheckError):
            await orchestrator.run()
        self.reporter.render.assert_not_called()

    async def test_result_skip_flag_stops_before_description(self):
        """结果自身带有 skip_further_suggestions 时，即使没有拆分建议也直接结束"""
        self.ai.handle_split_suggestions.side_effect = lambda result: dataclasses.replace(
            result, skip_further_suggestions=True
        )
        split_handler = AsyncMock()
        orchestrator = self._orchestrator(
            _make_context(ai=True, split=True, create_pr=True), split_handler=split_handler
        )

        result = await orchestrator.run()

        self.assertTrue(result.skip_further_suggestions)
        self.assertIsNone(result.split_suggestion)
        split_handler.handle_split_suggestion.assert_not_awaited()
        self.ai.handle_ai_suggestions.assert_not_awaited()
        self.pr_creator.create_pull_request.assert_not_awaited()

    async def test_stage_error_is_reraised_unchanged(self):
        error = RuntimeError("render failed")
        self.reporter.render.side_effect = error
        orchestrator = self._orchestrator(_make_context(ai=True, create_pr=True))

        with self.assertLogs("orchestrator", level="ERROR"):
            with self.assertRaises(RuntimeError) as ctx:
                await orchestrator.run()

        self.assertIs(ctx.exception, error)
        self.ai.handle_ai_suggestions.assert_not_awaited()
        self.pr_creator.validate_github_access.assert_not_awaited()
        self.plugin_manager.trigger.assert_called_with("on_analysis_complete", ANY)

    async def test_split_suggestion_short_circuits(self):
        """建议拆分且未指定 continue_after_split 时，不生成描述也不创建 PR"""
        context = _make_context(ai=True, split=True, create_pr=True)
        orchestrator = self._orchestrator(context, split_handler=SplitHandler(context))

        result = await orchestrator.run()

        self.assertTrue(result.skip_further_suggestions)
        self.assertTrue(result.split_suggestion.should_split)
        self.ai.handle_ai_suggestions.assert_not_awaited()
        self.pr_creator.create_pull_request.assert_not_awaited()

    async def test_continue_after_split(self):
        context = _make_context(ai=True, split=True, continue_after_split=True, create_pr=True)
        orchestrator = self._orchestrator(context, split_handler=SplitHandler(context))

        result = await orchestrator.run()

        self.assertFalse(result.skip_further_suggestions)
        self.assertEqual(result.description.title, "Add login")
        self.assertEqual(result.pull_request.number, 7)

    async def test_no_split_needed_continues(self):
        self.ai.handle_split_suggestions.side_effect = _with_split(False)
        context = _make_context(ai=True, split=True)
        orchestrator = self._orchestrator(context, split_handler=SplitHandler(context))

        result = await orchestrator.run()

        self.assertEqual(result.description.body, "Body")
        self.assertIsNone(result.pull_request)
        self.pr_creator.validate_github_access.assert_not_awaited()
        self.assertEqual(orchestrator.state, PipelineState.DONE)

    async def test_github_access_failure_skips_ai_and_pr(self):
        self.pr_creator.validate_github_access.return_value = False
        orchestrator = self._orchestrator(_make_context(ai=True, create_pr=True))

        result = await orchestrator.run()

        self.assertIsNone(result.description)
        self.assertIsNone(result.pull_request)
        self.ai.handle_split_suggestions.assert_not_awaited()
        self.ai.handle_ai_suggestions.assert_not_awaited()

    async def test_ai_with_draft_pr(self):
        orchestrator = self._orchestrator(_make_context(ai=True, draft=True))

        result = await orchestrator.run()

        self.ai.handle_split_suggestions.assert_not_awaited()
        self.pr_creator.create_pull_request.assert_awaited_once()
        self.assertEqual(self.pr_creator.create_pull_request.await_args.kwargs, {"draft": True})
        self.assertTrue(result.pull_request.draft)

    async def test_pr_without_ai(self):
        orchestrator = self._orchestrator(_make_context(ai=False, create_pr=True))

        result = await orchestrator.run()

        self.pr_creator.validate_github_access.assert_awaited_once()
        self.assertEqual(result.pull_request.number, 7)
        self.assertIsNone(result.description)
        self.ai.handle_ai_suggestions.assert_not_awaited()

    async def test_pr_without_ai_access_denied(self):
        self.pr_creator.validate_github_access.return_value = False
        orchestrator = self._orchestrator(_make_context(ai=False, create_pr=True))

        result = await orchestrator.run()

        self.assertIsNone(result.pull_request)
        self.pr_creator.create_pull_request.assert_not_awaited()

    async def test_unavailable_provider_disables_ai(self):
        context = _make_context(ai=True, llm_id="no-such-provider", create_pr=True)
        orchestrator = self._orchestrator(context, ai=None)

        result = await orchestrator.run()

        self.assertFalse(orchestrator.is_ai_enabled)
        self.assertIsNone(result.description)
        self.assertEqual(result.pull_request.number, 7)


if __name__ == "__main__":
    unittest.main()
