#!/usr/bin/env python3
"""
模板检查工具。

命令行工具，用于：
- 校验模板 JSON 结构
- 列出模板中的全部别名，报告无法解析的别名
- 列出声明了band的表格，提示缺少模板行的表格

使用方法:
    python -m TemplateEngine.scripts.validate_template invoice.json
    python -m TemplateEngine.scripts.validate_template ./templates/ --recursive --verbose
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from TemplateEngine.core import AliasDetector, AliasSyntaxError, TemplateError
from TemplateEngine.core.table_expander import TableCollector
from TemplateEngine.core.walker import walk
from TemplateEngine.document import Document, Paragraph, clone_node, extract_text, load_document
from TemplateEngine.document.nodes import iter_nodes


@dataclass
class TemplateIssue:
    """单个问题"""
    location: str
    message: str
    severity: str = "error"


@dataclass
class TemplateReport:
    """模板检查报告"""
    file_path: str
    aliases: List[str] = field(default_factory=list)
    band_tables: List[str] = field(default_factory=list)
    issues: List[TemplateIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)


def inspect_document(document: Document, file_path: str = "") -> TemplateReport:
    """
    检查已加载的模板。

    表格分类会剥离band声明标记，因此在模板的副本上进行，原模板不受影响。
    """
    report = TemplateReport(file_path=file_path or document.name)
    working = clone_node(document)

    collector = TableCollector()
    walk(working, collector)
    for idx, manager in enumerate(collector.table_managers.values(), start=1):
        report.band_tables.append(manager.band_name)
        if not manager.template_row_found:
            report.issues.append(TemplateIssue(
                location=f"band表格#{idx}",
                message=f"声明了 band={manager.band_name}，但没有包含别名的模板行",
                severity="warning",
            ))

    detector = AliasDetector()
    # iter_nodes 会同时覆盖正文与页眉页脚
    paragraphs = [node for node in iter_nodes(working) if isinstance(node, Paragraph)]
    for p_idx, paragraph in enumerate(paragraphs):
        text = extract_text(paragraph)
        if not detector.paragraph_has_aliases(text):
            continue
        try:
            tokens = detector.find_aliases(text)
        except AliasSyntaxError as exc:
            report.issues.append(TemplateIssue(
                location=f"paragraph[{p_idx}]",
                message=exc.message,
            ))
            continue
        report.aliases.extend(token.text for token in tokens)
    return report


def validate_file(file_path: Path) -> TemplateReport:
    try:
        document = load_document(file_path)
    except TemplateError as exc:
        report = TemplateReport(file_path=str(file_path))
        report.issues.append(TemplateIssue(location="document", message=str(exc)))
        return report
    return inspect_document(document, str(file_path))


def print_report(report: TemplateReport, verbose: bool = False) -> None:
    print(f"\n{'=' * 60}")
    print(f"文件: {report.file_path}")
    print(f"{'=' * 60}")
    print(f"  - 别名数: {len(report.aliases)}")
    print(f"  - band表格: {', '.join(report.band_tables) or '无'}")
    if verbose:
        for alias in sorted(set(report.aliases)):
            print(f"    {alias}")
    for issue in report.issues:
        marker = "✗" if issue.severity == "error" else "⚠"
        print(f"  {marker} [{issue.location}] {issue.message}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="检查 JSON 模板中的别名与band表格")
    parser.add_argument("paths", nargs="+", help="要检查的 JSON 模板文件或目录")
    parser.add_argument("-r", "--recursive", action="store_true", help="递归处理目录")
    parser.add_argument("-v", "--verbose", action="store_true", help="显示详细信息")
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    files: List[Path] = []
    for path_str in args.paths:
        path = Path(path_str)
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            files.extend(sorted(path.rglob("*.json") if args.recursive else path.glob("*.json")))

    if not files:
        print("未找到 JSON 模板")
        return 1

    reports = [validate_file(file_path) for file_path in files]
    for report in reports:
        if args.verbose or report.issues:
            print_report(report, args.verbose)

    failed = sum(1 for report in reports if report.has_errors)
    print(f"\n共检查 {len(reports)} 个模板，{failed} 个存在错误")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
