# BranchLens.py
"""
BranchLens 启动器
  - cli.py: 命令行界面和配置组装
  - context.py: 运行时配置模型
  - orchestrator.py: 核心分析流水线
  - BranchLens.py: 仅作为主入口
"""

import logging
import sys

# 日志必须在导入其他模块之前配置
import utils

utils.setup_logging()

logger = logging.getLogger(__name__)


if __name__ == "__main__":
    try:
        import cli

        sys.exit(cli.run_cli())

    except Exception as e:
        logger.error(f"❌ 发生未处理的全局异常: {e}", exc_info=True)
        sys.exit(1)
