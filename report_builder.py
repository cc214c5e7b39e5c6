# report_builder.py
"""
[V1.0] 报告生成器
- 纯文本报告：终端输出，同时作为 AI 的输入上下文
- HTML 报告：Jinja2 模板渲染 (可选)
"""
import logging
import os
from datetime import datetime
from typing import Optional

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from context import RunContext
from models import PRAnalysisResult

logger = logging.getLogger(__name__)

_TIME_FORMAT = "%Y-%m-%d %H:%M"


def generate_text_report(result: PRAnalysisResult, detailed: bool = False) -> str:
    """生成纯文本格式的分支分析报告"""
    stats = result.stats
    lines = [
        "=" * 80,
        "                            Branch Analysis",
        "=" * 80,
        f"Branch: {result.branch}",
        f"Base branch: {result.base_branch}",
        f"Commits: {stats.total_commits}",
        f"Files changed: {stats.files_changed}",
        f"Changes: +{stats.additions} -{stats.deletions}",
        f"Authors: {', '.join(sorted(stats.authors)) or '-'}",
        f"Time span: {stats.time_span.first_commit.strftime(_TIME_FORMAT)}"
        f" -> {stats.time_span.last_commit.strftime(_TIME_FORMAT)}",
        "",
    ]

    if result.warnings:
        lines.append("Warnings:")
        lines.extend(f"  ⚠️ {warning}" for warning in result.warnings)
        lines.append("")

    if result.files_by_directory:
        lines.append("Files by directory:")
        for directory, paths in result.files_by_directory.items():
            lines.append(f"  {directory or '(root)'}: {len(paths)} file(s)")
        lines.append("")

    if detailed:
        if result.files:
            lines.append("-" * 80)
            lines.append(f" {'+':<6} | {'-':<6} | {'type':<8} | path")
            lines.append("-" * 80)
            for file in result.files:
                lines.append(
                    f" +{file.additions:<5} | -{file.deletions:<5} | {file.file_type:<8} | {file.path}"
                )
            lines.append("")
        if result.commits:
            lines.append("-" * 80)
            lines.append("Commits (newest first):")
            for commit in result.commits:
                lines.append(
                    f"  {commit.short_hash} {commit.subject} "
                    f"({commit.author}, {commit.date.strftime(_TIME_FORMAT)})"
                )
            lines.append("")

    if not result.commits:
        lines.append("⚠️  No commits found")
    lines.append("=" * 80)
    return "\n".join(lines)


def _get_css_styles(global_config: GlobalConfig) -> str:
    """读取 CSS 文件内容"""
    css_path = os.path.join(
        global_config.SCRIPT_BASE_PATH, global_config.TEMPLATES_DIR_NAME, "styles.css"
    )
    try:
        with open(css_path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"❌ 加载 CSS 模板失败: {e}")
        return ""


def get_template_environment(global_config: GlobalConfig) -> Environment:
    templates_dir = os.path.join(
        global_config.SCRIPT_BASE_PATH, global_config.TEMPLATES_DIR_NAME
    )
    return Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml", "html.j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def generate_html_report(result: PRAnalysisResult, global_config: GlobalConfig) -> str:
    """使用 Jinja2 模板引擎生成 HTML 报告"""
    env = get_template_environment(global_config)

    description_html = ""
    if result.description and result.description.body:
        description_html = markdown.markdown(
            result.description.body, extensions=["fenced_code", "tables", "sane_lists"]
        )

    template_context = {
        "title": f"Branch Report - {result.branch}",
        "generation_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "css_content": _get_css_styles(global_config),
        "result": result,
        "stats": result.stats,
        "authors": sorted(result.stats.authors),
        "description_html": description_html,
    }
    template = env.get_template("report.html.j2")
    logger.debug("🎨 正在渲染 Jinja2 模板: report.html.j2")
    return template.render(**template_context)


def save_html_report(html_content: str, context: RunContext) -> Optional[str]:
    """保存HTML报告到 <repo>/.branchlens/ 目录"""
    output_dir = os.path.join(context.repo_path, context.global_config.REPORT_DIR_NAME)
    filename = (
        f"{context.global_config.OUTPUT_FILENAME_PREFIX}_"
        f"{datetime.now().strftime('%Y%m%d_%H%M%S')}.html"
    )
    full_path = os.path.join(output_dir, filename)

    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(html_content)
        logger.info(f"✅ HTML报告已保存: {full_path}")
        return full_path
    except OSError as e:
        logger.error(f"❌ 保存HTML报告失败 ({full_path}): {e}")
        return None


class Reporter:
    """报告输出 (只产生副作用，不修改分析结果)"""

    def __init__(self, context: RunContext):
        self.context = context

    def render(self, result: PRAnalysisResult, detailed: bool = False) -> None:
        logger.info("\n" + generate_text_report(result, detailed=detailed))
        if self.context.html_report:
            html_content = generate_html_report(result, self.context.global_config)
            save_html_report(html_content, self.context)
