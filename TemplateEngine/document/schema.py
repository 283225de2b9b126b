"""
模板文档JSON契约（Document IR）常量。

模板以JSON形式落盘，校验器与序列化器都围绕这里的常量工作，
确保读入与写出的结构保持一致。
"""

from __future__ import annotations

from typing import List

DOCUMENT_IR_VERSION = "1.0"

# ====== 基础常量 ======
ALLOWED_BLOCK_TYPES: List[str] = [
    "paragraph",
    "table",
    "wrapped",
]

ALLOWED_INLINE_TYPES: List[str] = [
    "run",
    "wrapped",
]

ALLOWED_RUN_CONTENT_TYPES: List[str] = [
    "text",
    "break",
    "drawing",
    "wrapped",
]

ALLOWED_BREAK_TYPES: List[str] = ["line", "page", "column"]

HEADER_FOOTER_VARIANTS: List[str] = ["default", "first", "even"]

__all__ = [
    "DOCUMENT_IR_VERSION",
    "ALLOWED_BLOCK_TYPES",
    "ALLOWED_INLINE_TYPES",
    "ALLOWED_RUN_CONTENT_TYPES",
    "ALLOWED_BREAK_TYPES",
    "HEADER_FOOTER_VARIANTS",
]
