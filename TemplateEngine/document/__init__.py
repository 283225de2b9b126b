"""
模板文档模型与读写工具。

节点树是填充引擎唯一操作的对象；schema/validator/serializer 负责
JSON 形式模板与节点树之间的转换，保证读入与写出的结构一致。
"""

from .nodes import (
    Break,
    Cell,
    Document,
    Drawing,
    HeaderFooter,
    Node,
    Paragraph,
    Row,
    Run,
    Table,
    Text,
    Wrapped,
    children_of,
    clone_node,
    extract_text,
    unwrap,
)
from .schema import DOCUMENT_IR_VERSION
from .validator import DocumentValidator
from .serializer import document_from_dict, document_to_dict, dump_document, load_document

__all__ = [
    "Break",
    "Cell",
    "Document",
    "Drawing",
    "HeaderFooter",
    "Node",
    "Paragraph",
    "Row",
    "Run",
    "Table",
    "Text",
    "Wrapped",
    "children_of",
    "clone_node",
    "extract_text",
    "unwrap",
    "DOCUMENT_IR_VERSION",
    "DocumentValidator",
    "document_from_dict",
    "document_to_dict",
    "dump_document",
    "load_document",
]
