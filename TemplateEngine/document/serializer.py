"""
模板文档的读写：JSON ⇄ 节点树。

加载时先经过 DocumentValidator 校验，任何结构问题都会以
TemplateLoadError 抛出；写出失败统一转换为 SerializationError。
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from ..core.errors import SerializationError, TemplateLoadError
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
)
from .schema import DOCUMENT_IR_VERSION
from .validator import DocumentValidator


# ===== JSON → 节点 =====

def document_from_dict(payload: Dict[str, Any], name: Optional[str] = None) -> Document:
    """
    将JSON对象构建为 Document 节点树。

    参数:
        payload: 符合 Document IR 的字典。
        name: 文档名称，缺省时取 payload["name"]。

    返回:
        Document: 新建的节点树。

    异常:
        TemplateLoadError: 结构校验未通过。
    """
    doc_name = name or (payload.get("name") if isinstance(payload, dict) else None) or ""
    ok, errors = DocumentValidator().validate_document(payload)
    if not ok:
        preview = "; ".join(errors[:5])
        raise TemplateLoadError(
            f"模板结构不合法（{len(errors)} 处问题）: {preview}",
            template_name=doc_name or None,
        )

    return Document(
        name=doc_name,
        body=[_build_node(block) for block in payload.get("body", [])],
        headers=[_build_header_footer(entry, "header") for entry in payload.get("headers", [])],
        footers=[_build_header_footer(entry, "footer") for entry in payload.get("footers", [])],
    )


def _build_header_footer(entry: Dict[str, Any], part: str) -> HeaderFooter:
    return HeaderFooter(
        part=part,
        variant=entry.get("variant", "default"),
        content=[_build_node(block) for block in entry.get("blocks", [])],
    )


def _build_node(payload: Dict[str, Any]) -> Node:
    node_type = payload.get("type")
    if node_type == "wrapped":
        return Wrapped(value=_build_node(payload["value"]), tag=payload.get("tag", ""))
    if node_type == "paragraph":
        return Paragraph(
            content=[_build_node(item) for item in payload.get("content", [])],
            style=payload.get("style"),
        )
    if node_type == "run":
        return Run(
            content=[_build_node(item) for item in payload.get("content", [])],
            props=dict(payload.get("props", {})),
        )
    if node_type == "text":
        return Text(value=payload["text"], preserve_space=payload.get("preserveSpace", False))
    if node_type == "break":
        return Break(break_type=payload.get("breakType", "line"))
    if node_type == "drawing":
        data: Any = payload.get("src")
        if "data" in payload:
            data = base64.b64decode(payload["data"])
        return Drawing(
            data=data,
            width=payload.get("width", 0),
            height=payload.get("height", 0),
            description=payload.get("description", ""),
        )
    if node_type == "table":
        return Table(
            rows=[_build_row(row) for row in payload.get("rows", [])],
            props=dict(payload.get("props", {})),
        )
    raise TemplateLoadError(f"未知的节点类型: {node_type}")


def _build_row(payload: Dict[str, Any]) -> Node:
    if payload.get("type") == "wrapped":
        return Wrapped(value=_build_row(payload["value"]), tag=payload.get("tag", ""))
    cells = [
        Cell(
            content=[_build_node(block) for block in cell.get("blocks", [])],
            props=dict(cell.get("props", {})),
        )
        for cell in payload.get("cells", [])
    ]
    return Row(cells=cells, props=dict(payload.get("props", {})))


# ===== 节点 → JSON =====

def document_to_dict(document: Document) -> Dict[str, Any]:
    """将节点树序列化为 Document IR 字典（不包含 node_id）。"""
    return {
        "version": DOCUMENT_IR_VERSION,
        "name": document.name,
        "body": [_node_to_dict(node) for node in document.body],
        "headers": [_header_footer_to_dict(part) for part in document.headers],
        "footers": [_header_footer_to_dict(part) for part in document.footers],
    }


def _header_footer_to_dict(part: HeaderFooter) -> Dict[str, Any]:
    return {
        "variant": part.variant,
        "blocks": [_node_to_dict(node) for node in part.content],
    }


def _with_props(payload: Dict[str, Any], props: Dict[str, Any]) -> Dict[str, Any]:
    if props:
        payload["props"] = dict(props)
    return payload


def _node_to_dict(node: Node) -> Dict[str, Any]:
    if isinstance(node, Wrapped):
        return {"type": "wrapped", "tag": node.tag, "value": _node_to_dict(node.value)}
    if isinstance(node, Paragraph):
        payload: Dict[str, Any] = {"type": "paragraph"}
        if node.style is not None:
            payload["style"] = node.style
        payload["content"] = [_node_to_dict(item) for item in node.content]
        return payload
    if isinstance(node, Run):
        payload = _with_props({"type": "run"}, node.props)
        payload["content"] = [_node_to_dict(item) for item in node.content]
        return payload
    if isinstance(node, Text):
        payload = {"type": "text", "text": node.value}
        if node.preserve_space:
            payload["preserveSpace"] = True
        return payload
    if isinstance(node, Break):
        return {"type": "break", "breakType": node.break_type}
    if isinstance(node, Drawing):
        return _drawing_to_dict(node)
    if isinstance(node, Table):
        payload = _with_props({"type": "table"}, node.props)
        payload["rows"] = [_row_to_dict(row) for row in node.rows]
        return payload
    raise SerializationError(f"无法序列化的节点类型: {type(node).__name__}")


def _row_to_dict(row: Node) -> Dict[str, Any]:
    if isinstance(row, Wrapped):
        return {"type": "wrapped", "tag": row.tag, "value": _row_to_dict(row.value)}
    if not isinstance(row, Row):
        raise SerializationError(f"表格中出现了非行节点: {type(row).__name__}")
    cells: List[Dict[str, Any]] = []
    for cell in row.cells:
        cell_payload = _with_props({}, cell.props)
        cell_payload["blocks"] = [_node_to_dict(block) for block in cell.content]
        cells.append(cell_payload)
    payload = _with_props({}, row.props)
    payload["cells"] = cells
    return payload


def _drawing_to_dict(node: Drawing) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": "drawing"}
    if isinstance(node.data, (bytes, bytearray)):
        payload["data"] = base64.b64encode(bytes(node.data)).decode("ascii")
    elif isinstance(node.data, (str, Path)):
        payload["src"] = str(node.data)
    else:
        raise SerializationError(f"drawing.data 类型不受支持: {type(node.data).__name__}")
    payload["width"] = node.width
    payload["height"] = node.height
    if node.description:
        payload["description"] = node.description
    return payload


# ===== 文件读写 =====

def load_document(path: Union[str, Path], encoding: str = "utf-8") -> Document:
    """
    从JSON文件加载模板。

    文档名默认使用文件名（不含后缀），便于错误信息中定位模板。
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding=encoding)
    except OSError as exc:
        raise TemplateLoadError(
            f"无法读取模板文件: {file_path}", cause=exc, template_name=file_path.stem
        ) from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TemplateLoadError(
            f"模板不是合法的JSON: {exc.msg} (行 {exc.lineno})",
            cause=exc,
            template_name=file_path.stem,
        ) from exc

    declared_name = payload.get("name") if isinstance(payload, dict) else None
    document = document_from_dict(payload, name=declared_name or file_path.stem)
    logger.debug(f"已加载模板 {document.name}: {len(document.body)} 个正文块")
    return document


def dump_document(
    document: Document, path: Union[str, Path], encoding: str = "utf-8"
) -> Path:
    """把填充后的文档写入JSON文件，返回写入路径。"""
    file_path = Path(path)
    try:
        payload = document_to_dict(document)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding=encoding
        )
    except SerializationError as exc:
        raise exc.with_template(document.name)
    except (OSError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"写出文档失败: {file_path}", cause=exc, template_name=document.name
        ) from exc
    logger.info(f"文档已写出: {file_path}")
    return file_path


__all__ = [
    "document_from_dict",
    "document_to_dict",
    "load_document",
    "dump_document",
]
