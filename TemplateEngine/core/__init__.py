"""
Template Engine核心工具集合。

该包封装了树遍历、碎片合并、别名识别、band解析、表格展开与参数格式化，
DocumentFiller/render 把它们串成一次完整的模板填充。
"""

from .errors import (
    AliasSyntaxError,
    BandNotFoundError,
    ParameterMissingError,
    SerializationError,
    TemplateError,
    TemplateLoadError,
    ValueFormatError,
)
from .walker import SKIP_CHILDREN, NodeVisitor, WalkContext, WalkSignal, walk
from .text_merger import TextMerger, TextSpanGroup, merge_literal
from .aliases import AliasDetector, AliasToken, AliasVisitor
from .band import BandData, ReportFieldFormat, find_band_by_path, load_band_data
from .inliners import ContentInliner, ContentInlinerRegistry, ImageContentInliner, default_inliners
from .formatter import ParameterFormatter
from .table_expander import TableExpander, TableManager, TableState
from .filler import DocumentFiller, render

__all__ = [
    "AliasSyntaxError",
    "BandNotFoundError",
    "ParameterMissingError",
    "SerializationError",
    "TemplateError",
    "TemplateLoadError",
    "ValueFormatError",
    "SKIP_CHILDREN",
    "NodeVisitor",
    "WalkContext",
    "WalkSignal",
    "walk",
    "TextMerger",
    "TextSpanGroup",
    "merge_literal",
    "AliasDetector",
    "AliasToken",
    "AliasVisitor",
    "BandData",
    "ReportFieldFormat",
    "find_band_by_path",
    "load_band_data",
    "ContentInliner",
    "ContentInlinerRegistry",
    "ImageContentInliner",
    "default_inliners",
    "ParameterFormatter",
    "TableExpander",
    "TableManager",
    "TableState",
    "DocumentFiller",
    "render",
]
