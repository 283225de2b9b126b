#!/usr/bin/env python3
"""
模板填充命令行工具。

读取 JSON 模板与 JSON 报表数据，填充后写出新的 JSON 文档。

使用方法:
    python -m TemplateEngine.scripts.render_template invoice.json data.json
    python -m TemplateEngine.scripts.render_template invoice.json data.json -o out/invoice.json
    python -m TemplateEngine.scripts.render_template invoice.json data.json --verbose
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from TemplateEngine.core import TemplateError, default_inliners, load_band_data, render
from TemplateEngine.document import dump_document, load_document
from TemplateEngine.utils.config import settings


def configure_logging(verbose: bool) -> None:
    """stderr 按命令行级别输出，配置了 LOG_FILE 时额外写一份 DEBUG 日志。"""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else settings.LOG_LEVEL)
    if settings.LOG_FILE:
        logger.add(settings.LOG_FILE, level="DEBUG", encoding="utf-8", mode="a")


def default_output_path(template_path: Path) -> Path:
    return Path(settings.OUTPUT_DIR) / f"{template_path.stem}.filled.json"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="用报表数据填充 JSON 模板",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("template", help="模板 JSON 文件")
    parser.add_argument("data", help="报表数据 JSON 文件")
    parser.add_argument(
        "-o", "--output",
        help="输出文件路径（默认写入 OUTPUT_DIR）",
    )
    parser.add_argument(
        "--no-inliners",
        action="store_true",
        help="禁用图片等富内容扩展",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="显示详细日志",
    )
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    template_path = Path(args.template)
    output_path = Path(args.output) if args.output else default_output_path(template_path)

    try:
        template = load_document(template_path, encoding=settings.TEMPLATE_ENCODING)
        data = load_band_data(args.data)
        inliners = None if args.no_inliners else default_inliners()
        filled = render(template, data, inliners=inliners)
        dump_document(filled, output_path, encoding=settings.TEMPLATE_ENCODING)
    except TemplateError as exc:
        logger.error(str(exc))
        print(f"✗ 填充失败: {exc}", file=sys.stderr)
        return 1

    print(f"✓ 已生成: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
