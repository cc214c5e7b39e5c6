# config.py
"""
[V1.0] 全局配置
- 进程启动时通过 .env 加载一次，之后只作为显式参数传递
"""
import os
from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
else:
    load_dotenv()


class GlobalConfig:
    """
    BranchLens 的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    TEMPLATES_DIR_NAME: str = "templates"
    PROMPTS_DIR_NAME: str = "prompts"
    PLUGINS_DIR_NAME: str = "plugins"
    REPORT_DIR_NAME: str = ".branchlens"
    OUTPUT_FILENAME_PREFIX: str = "BranchReport"

    # --- Git 命令格式 ---
    # 每条记录: hash / author / ISO 时间 / 完整提交信息 / 分隔行
    COMMIT_RECORD_DELIMITER: str = "--END--"
    GIT_COMMIT_LOG_FORMAT: str = "--format=%H%n%an%n%aI%n%B%n" + COMMIT_RECORD_DELIMITER
    GIT_COMMAND_TIMEOUT: int = 30
    REMOTE_NAME: str = "origin"
    FALLBACK_COMMIT_LIMIT: int = 10
    DEFAULT_BRANCH_CANDIDATES: list[str] = ["main", "master", "develop"]

    # --- 调试开关 (只在此处读取一次环境变量) ---
    DEBUG: bool = os.getenv("BRANCHLENS_DEBUG", "false").lower() == "true"

    # =================================================================
    # --- GitHub 配置 ---
    # =================================================================
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")

    # =================================================================
    # --- AI 供应商配置 ---
    # =================================================================

    # 1. 供应商 API 密钥
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    DEEPSEEK_API_KEY: str = os.getenv("DEEPSEEK_API_KEY", "")

    # 2. 供应商特定配置
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"

    # 3. 应用程序默认值
    DEFAULT_LLM: str = os.getenv("DEFAULT_LLM", "gemini").lower()
    AI_MAX_DIFF_CHARS: int = 100000

    # 4. 供应商的默认模型
    DEFAULT_MODEL_GEMINI: str = "gemini-2.5-flash"
    DEFAULT_MODEL_DEEPSEEK: str = "deepseek-chat"

    def is_provider_configured(self, provider: str) -> bool:
        """
        检查特定供应商是否已在环境中设置其 API 密钥。
        mock 供应商无需密钥。
        """
        if provider == "mock":
            return True
        if provider == "gemini":
            return bool(self.GEMINI_API_KEY)
        if provider == "deepseek":
            return bool(self.DEEPSEEK_API_KEY)
        return False

    # =================================================================
    # --- 安全扫描 ---
    # =================================================================
    SENSITIVE_FILE_PATTERNS: list[str] = [
        ".env",
        ".env.*",
        "*.pem",
        "*.key",
        "*.p12",
        "*.pfx",
        "*.keystore",
        "id_rsa*",
        "id_dsa*",
        "id_ecdsa*",
        "id_ed25519*",
        "*.kdbx",
        "credentials.json",
        ".npmrc",
        ".pypirc",
        ".netrc",
    ]
    DEFAULT_ENTROPY_THRESHOLD: float = 4.5
    MIN_ENTROPY_TOKEN_LENGTH: int = 20
