# cli.py
"""
[V1.0] 命令行界面 (Interface) 层
负责 argparse 定义、配置合并与 RunContext 组装，然后交给 BranchOrchestrator。
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import config_manager
import utils
from config import GlobalConfig
from context import RunContext
from errors import BranchLensError
from git_utils import is_git_repository
from orchestrator import BranchOrchestrator

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="BranchLens - 分支分析与 PR 助手",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "-r",
        "--repo-path",
        type=str,
        default=".",
        help="要分析的 Git 仓库根目录 (默认: 当前目录)",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="要分析的分支名 (默认: 当前检出的分支)",
    )
    parser.add_argument(
        "--base",
        type=str,
        default=None,
        help="基准分支 (默认: 项目配置 git.base_branch，否则自动探测)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"项目配置文件路径 (默认: <repo>/{config_manager.PROJECT_CONFIG_FILE})",
    )

    # --- AI ---
    parser.add_argument(
        "--ai",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="启用/禁用 AI 功能 (默认: 项目配置 ai.enabled)",
    )
    parser.add_argument(
        "--llm",
        type=str,
        default=None,
        help="指定 LLM 供应商 (例如 'gemini', 'deepseek', 'mock')。\n"
        "(默认: 项目配置 ai.provider，否则 .env 中的 DEFAULT_LLM)",
    )
    parser.add_argument("--split", action="store_true", help="请求 AI 给出 PR 拆分建议")
    parser.add_argument(
        "--continue-after-split",
        action="store_true",
        help="即使建议拆分，也继续生成描述 / 创建 PR",
    )

    # --- PR ---
    parser.add_argument("--create-pr", action="store_true", help="在 GitHub 上创建 Pull Request")
    parser.add_argument("--draft", action="store_true", help="以草稿形式创建 Pull Request")

    # --- 安全检查 (默认跳过) ---
    security_group = parser.add_mutually_exclusive_group()
    security_group.add_argument(
        "--security",
        dest="skip_security",
        action="store_const",
        const=False,
        help="运行安全检查 (需项目配置 security.enabled 为 true)",
    )
    security_group.add_argument(
        "--skip-security",
        dest="skip_security",
        action="store_const",
        const=True,
        help="跳过安全检查 (默认)",
    )
    parser.set_defaults(skip_security=None)

    # --- 报告 ---
    parser.add_argument("--detailed", action="store_true", help="输出文件明细与提交列表")
    parser.add_argument(
        "--html-report",
        action="store_true",
        help="额外生成 HTML 报告 (保存到 <repo>/.branchlens/)",
    )
    parser.add_argument("--debug", action="store_true", help="输出调试日志")

    return parser


def build_context(args: argparse.Namespace, global_config: GlobalConfig) -> RunContext:
    repo_path = os.path.abspath(args.repo_path)
    project_config = config_manager.load_project_config(repo_path, args.config)
    return RunContext(
        repo_path=repo_path,
        name=args.name,
        base=args.base,
        ai=args.ai,
        llm_id=args.llm,
        split=args.split,
        continue_after_split=args.continue_after_split,
        create_pr=args.create_pr,
        draft=args.draft,
        skip_security=args.skip_security,
        detailed=args.detailed,
        html_report=args.html_report,
        debug=args.debug or global_config.DEBUG,
        project_config=project_config,
        global_config=global_config,
    )


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    主入口点，返回进程退出码。
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    global_config = GlobalConfig()
    utils.setup_logging(debug=args.debug or global_config.DEBUG)

    run_context = build_context(args, global_config)

    if not asyncio.run(is_git_repository(run_context.repo_path)):
        logger.error(f"❌ '{run_context.repo_path}' 不是一个有效的 Git 仓库。")
        return 1

    logger.info("=" * 50)
    logger.info("🚀 BranchLens 启动...")
    logger.info(f"   [目标仓库]: {run_context.repo_path}")
    logger.info(f"   [分析分支]: {run_context.name or '(当前分支)'}")
    logger.info(f"   [基准分支]: {run_context.base or '(自动)'}")
    logger.info("=" * 50)

    try:
        asyncio.run(BranchOrchestrator(run_context).run())
    except BranchLensError as e:
        logger.error(f"❌ {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ 发生未处理的异常: {e}", exc_info=True)
        return 1

    logger.info("✅ BranchLens 运行完毕。")
    return 0


def main():
    sys.exit(run_cli())
