import logging
import tempfile
import unittest
from unittest.mock import AsyncMock, patch

import cli
from config import GlobalConfig


class TestRunCli(unittest.TestCase):

    def setUp(self):
        self.repo = tempfile.TemporaryDirectory()
        self.addCleanup(self.repo.cleanup)
        patcher = patch.object(GlobalConfig, "DEBUG", False)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_logging_is_configured_without_launcher(self):
        """直接调用 run_cli (console script 入口) 时也会配置 INFO 级别日志"""
        with patch("cli.utils.setup_logging") as setup_logging, patch(
            "cli.is_git_repository", new_callable=AsyncMock, return_value=False
        ):
            exit_code = cli.run_cli(["-r", self.repo.name])

        self.assertEqual(exit_code, 1)
        setup_logging.assert_called_once_with(debug=False)

    def test_debug_flag(self):
        with patch("cli.utils.setup_logging") as setup_logging, patch(
            "cli.is_git_repository", new_callable=AsyncMock, return_value=False
        ):
            cli.run_cli(["-r", self.repo.name, "--debug"])

        setup_logging.assert_called_once_with(debug=True)

    def test_report_reaches_info_level(self):
        with patch("cli.is_git_repository", new_callable=AsyncMock, return_value=True), patch(
            "cli.BranchOrchestrator"
        ) as orchestrator_cls:
            orchestrator_cls.return_value.run = AsyncMock()
            exit_code = cli.run_cli(["-r", self.repo.name])

        self.assertEqual(exit_code, 0)
        self.assertEqual(logging.getLogger().level, logging.INFO)
        self.assertTrue(logging.getLogger("report_builder").isEnabledFor(logging.INFO))

    def test_context_from_arguments(self):
        args = cli.setup_parser().parse_args(
            ["-r", self.repo.name, "--name", "feature", "--no-ai", "--draft", "--security"]
        )
        context = cli.build_context(args, GlobalConfig())

        self.assertEqual(context.name, "feature")
        self.assertFalse(context.ai)
        self.assertTrue(context.needs_github_access)
        self.assertFalse(context.skip_security)
        self.assertIsNone(cli.build_context(cli.setup_parser().parse_args([]), GlobalConfig()).skip_security)


if __name__ == "__main__":
    unittest.main()
