import unittest
from unittest.mock import MagicMock

from ai_advisor import AIAdvisor, extract_json_object, parse_split_suggestion
from analysis_builder import build_analysis_result
from context import RunContext
from hooks.manager import PluginManager
from models import FileChange
from plugins.clean_output import CleanOutputPlugin


def _result():
    files = [FileChange(path=f"src/file_{i}.py", additions=1) for i in range(3)]
    return build_analysis_result("feature/login", "main", [], files, "diff body")


class TestJsonHandling(unittest.TestCase):

    def test_plain_json(self):
        self.assertEqual(extract_json_object('{"title": "x"}'), {"title": "x"})

    def test_fenced_json_with_prose(self):
        raw = 'Here you go:\n```json\n{"title": "x", "items": [1, 2,],}\n```\nThanks!'
        self.assertEqual(extract_json_object(raw), {"title": "x", "items": [1, 2]})

    def test_not_json(self):
        self.assertIsNone(extract_json_object("no braces here"))
        self.assertIsNone(extract_json_object(""))
        self.assertIsNone(extract_json_object(None))

    def test_split_suggestion_is_sorted(self):
        suggestion = parse_split_suggestion(
            {
                "should_split": True,
                "reason": "two concerns",
                "suggested_prs": [
                    {"title": "UI", "files": ["ui.ts"], "order": 2},
                    {"title": "API", "files": ["api.py"], "order": "1"},
                    {"description": "missing title"},
                ],
            }
        )
        self.assertTrue(suggestion.should_split)
        self.assertEqual([pr.title for pr in suggestion.suggested_prs], ["API", "UI"])

    def test_single_pr_is_not_a_split(self):
        suggestion = parse_split_suggestion(
            {"should_split": True, "suggested_prs": [{"title": "All", "files": []}]}
        )
        self.assertFalse(suggestion.should_split)

    def test_invalid_pr_list(self):
        self.assertIsNone(parse_split_suggestion({"suggested_prs": "nope"}))


class TestAIAdvisor(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.context = RunContext(repo_path="/tmp/repo")
        self.provider = MagicMock()
        self.plugin_manager = PluginManager(self.context)
        self.plugin_manager.register(CleanOutputPlugin())
        self.advisor = AIAdvisor(self.context, self.provider, self.plugin_manager)

    async def test_description_from_fenced_json(self):
        self.provider.describe_changes.return_value = (
            '```json\n{"title": "Add login", "description": "Adds the login page"}\n```'
        )

        result = await self.advisor.handle_ai_suggestions(_result())

        self.assertEqual(result.description.title, "Add login")
        self.assertEqual(result.description.body, "Adds the login page")
        report, diff = self.provider.describe_changes.call_args.args
        self.assertIn("Branch: feature/login", report)
        self.assertEqual(diff, "diff body")

    async def test_plain_text_description(self):
        self.provider.describe_changes.return_value = "Just a paragraph."
        result = await self.advisor.handle_ai_suggestions(_result())
        self.assertEqual(result.description.title, "")
        self.assertEqual(result.description.body, "Just a paragraph.")

    async def test_provider_failure_keeps_result(self):
        self.provider.describe_changes.side_effect = RuntimeError("quota exceeded")
        original = _result()
        result = await self.advisor.handle_ai_suggestions(original)
        self.assertIs(result, original)

    async def test_split_suggestion_attached(self):
        self.provider.suggest_split.return_value = (
            '{"should_split": true, "reason": "big", "suggested_prs": '
            '[{"title": "a", "order": 1}, {"title": "b", "order": 2}]}'
        )
        result = await self.advisor.handle_split_suggestions(_result())
        self.assertTrue(result.split_suggestion.should_split)
        self.assertEqual(result.split_suggestion.reason, "big")

    async def test_unparseable_split_is_ignored(self):
        self.provider.suggest_split.return_value = "I cannot decide"
        result = await self.advisor.handle_split_suggestions(_result())
        self.assertIsNone(result.split_suggestion)

    async def test_long_diff_is_truncated(self):
        self.context.global_config.AI_MAX_DIFF_CHARS = 5
        self.provider.describe_changes.return_value = '{"title": "t"}'
        await self.advisor.handle_ai_suggestions(_result())
        _, diff = self.provider.describe_changes.call_args.args
        self.assertTrue(diff.startswith("diff "))
        self.assertTrue(diff.endswith("(diff truncated)"))


if __name__ == "__main__":
    unittest.main()
