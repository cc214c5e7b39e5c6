import logging
import os
import sys
from typing import Dict, Tuple


def setup_logging(debug: bool = False):
    """配置全局日志 (debug 由调用方显式传入)"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


# 扩展名 -> 文件类别
_EXTENSION_TYPES: Dict[str, str] = {
    ".py": "source",
    ".ts": "source",
    ".tsx": "source",
    ".js": "source",
    ".jsx": "source",
    ".mjs": "source",
    ".go": "source",
    ".rs": "source",
    ".java": "source",
    ".kt": "source",
    ".rb": "source",
    ".php": "source",
    ".c": "source",
    ".h": "source",
    ".cpp": "source",
    ".cs": "source",
    ".swift": "source",
    ".sh": "source",
    ".sql": "source",
    ".css": "style",
    ".scss": "style",
    ".less": "style",
    ".html": "markup",
    ".vue": "markup",
    ".svelte": "markup",
    ".md": "docs",
    ".rst": "docs",
    ".txt": "docs",
    ".json": "config",
    ".yaml": "config",
    ".yml": "config",
    ".toml": "config",
    ".ini": "config",
    ".cfg": "config",
    ".env": "config",
    ".lock": "lockfile",
    ".png": "asset",
    ".jpg": "asset",
    ".jpeg": "asset",
    ".gif": "asset",
    ".svg": "asset",
    ".ico": "asset",
    ".woff": "asset",
    ".woff2": "asset",
}

_TEST_MARKERS: Tuple[str, ...] = ("test_", "_test.", ".test.", ".spec.", "tests/", "__tests__/")


def get_file_type(path: str) -> Dict[str, str]:
    """根据路径扩展名推断文件类别 (纯查表，无 IO)"""
    basename = os.path.basename(path)
    _, extension = os.path.splitext(basename)
    if not extension and basename.startswith("."):
        extension = basename
    extension = extension.lower()

    lowered = path.lower()
    if any(marker in lowered for marker in _TEST_MARKERS):
        file_type = "test"
    else:
        file_type = _EXTENSION_TYPES.get(extension, "other")
    return {"extension": extension, "file_type": file_type}
