# branch_validator.py
import logging

from data_sources.base import VersionControlSource
from models import BranchValidationResult

logger = logging.getLogger(__name__)


class BranchValidator:
    """
    [V1.0] 分析前的分支校验
    - 分支是否存在于本地 / 远程
    - 本地与远程是否同步
    校验过程从不抛出异常，所有问题都体现在 BranchValidationResult 中。
    """

    def __init__(self, git: VersionControlSource, remote: str = "origin"):
        self.git = git
        self.remote = remote

    async def validate(self, branch_name: str) -> BranchValidationResult:
        logger.info("🔎 正在校验分支上下文...")
        result = BranchValidationResult()
        remote_branch = f"{self.remote}/{branch_name}"

        try:
            local_branches = await self.git.get_local_branches()
            remote_branches = [
                b for b in local_branches if b.startswith(f"{self.remote}/")
            ]

            result.exists_locally = branch_name in local_branches
            result.exists_remotely = remote_branch in remote_branches

            if not result.exists_locally:
                if result.exists_remotely:
                    result.errors.append(
                        f"Branch '{branch_name}' exists remotely but needs to be checked out locally first"
                    )
                else:
                    result.errors.append(
                        f"Branch '{branch_name}' not found locally or remotely"
                    )
                result.is_valid = False
                return result

            if result.exists_remotely:
                local_commit = await self.git.run_command("rev-parse", [branch_name])
                remote_commit = await self.git.run_command("rev-parse", [remote_branch])

                result.is_up_to_date = local_commit.strip() == remote_commit.strip()
                if not result.is_up_to_date:
                    result.warnings.append(
                        f"Branch '{branch_name}' is not up to date with remote"
                    )
                    logger.warning(f"⚠️ 分支 '{branch_name}' 与 {remote_branch} 不同步")

            return result
        except Exception as e:
            logger.error(f"❌ 分支校验失败: {e}")
            result.is_valid = False
            result.errors.append(f"Failed to validate branch: {e}")
            return result
