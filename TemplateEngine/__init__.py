"""
Template Engine。

把带 `${Band.field}` 别名的富文本模板与层级报表数据（band树）合并，
输出填充完成、可直接序列化的文档树。
"""

from .document import Document, document_from_dict, document_to_dict, dump_document, load_document
from .core import BandData, DocumentFiller, TemplateError, load_band_data, render

__version__ = "1.0.0"
__author__ = "Template Engine Team"

__all__ = [
    "Document",
    "BandData",
    "DocumentFiller",
    "TemplateError",
    "render",
    "load_band_data",
    "load_document",
    "dump_document",
    "document_from_dict",
    "document_to_dict",
]
