"""
模板文档JSON结构校验器。

模板在构建为节点树之前必须通过校验，避免在填充阶段才因为结构问题崩溃。
本模块实现轻量级的Python校验逻辑，错误定位采用path语法，无需依赖jsonschema库。
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from .schema import (
    ALLOWED_BLOCK_TYPES,
    ALLOWED_BREAK_TYPES,
    ALLOWED_INLINE_TYPES,
    ALLOWED_RUN_CONTENT_TYPES,
    DOCUMENT_IR_VERSION,
    HEADER_FOOTER_VARIANTS,
)


class DocumentValidator:
    """
    模板文档结构校验器。

    说明：
        - validate_document返回(是否通过, 错误列表)
        - 每种节点类型都有对应的 `_validate_<type>_node` 方法
        - wrapped 包装层可以出现在任意位置，校验时递归到内部节点
    """

    def __init__(self, schema_version: str = DOCUMENT_IR_VERSION):
        """记录当前Schema版本，便于未来多版本并存"""
        self.schema_version = schema_version

    # ======== 对外接口 ========

    def validate_document(self, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """校验整份文档：正文blocks与页眉页脚"""
        errors: List[str] = []
        if not isinstance(payload, dict):
            return False, ["document必须是对象"]

        version = payload.get("version")
        if version is not None and version != self.schema_version:
            errors.append(f"version 不被支持: {version}")

        name = payload.get("name")
        if name is not None and not isinstance(name, str):
            errors.append("name 必须是字符串")

        body = payload.get("body")
        if not isinstance(body, list):
            errors.append("body 必须是数组")
        else:
            self._validate_blocks(body, "body", errors)

        for part in ("headers", "footers"):
            entries = payload.get(part)
            if entries is None:
                continue
            if not isinstance(entries, list):
                errors.append(f"{part} 必须是数组")
                continue
            for idx, entry in enumerate(entries):
                self._validate_header_footer(entry, f"{part}[{idx}]", errors)

        return len(errors) == 0, errors

    # ======== 内部工具 ========

    def _validate_header_footer(self, entry: Any, path: str, errors: List[str]):
        if not isinstance(entry, dict):
            errors.append(f"{path} 必须是对象")
            return
        variant = entry.get("variant", "default")
        if variant not in HEADER_FOOTER_VARIANTS:
            errors.append(f"{path}.variant 取值非法: {variant}")
        blocks = entry.get("blocks")
        if not isinstance(blocks, list):
            errors.append(f"{path}.blocks 必须是数组")
            return
        self._validate_blocks(blocks, f"{path}.blocks", errors)

    def _validate_blocks(self, blocks: List[Any], path: str, errors: List[str]):
        for idx, block in enumerate(blocks):
            self._validate_node(block, f"{path}[{idx}]", ALLOWED_BLOCK_TYPES, errors)

    def _validate_node(
        self, node: Any, path: str, allowed: List[str], errors: List[str]
    ):
        """根据节点type调用不同的校验器"""
        if not isinstance(node, dict):
            errors.append(f"{path} 必须是对象")
            return

        node_type = node.get("type")
        if node_type not in allowed:
            errors.append(f"{path}.type 不被支持: {node_type}")
            return

        if node_type == "wrapped":
            self._validate_wrapped_node(node, path, allowed, errors)
            return

        validator = getattr(self, f"_validate_{node_type}_node", None)
        if validator:
            validator(node, path, errors)

    def _validate_wrapped_node(
        self, node: Dict[str, Any], path: str, allowed: List[str], errors: List[str]
    ):
        """包装层内部只能是当前位置允许的节点"""
        tag = node.get("tag", "")
        if not isinstance(tag, str):
            errors.append(f"{path}.tag 必须是字符串")
        self._validate_node(node.get("value"), f"{path}.value", allowed, errors)

    def _validate_paragraph_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        """paragraph的content是run数组，可以为空"""
        style = node.get("style")
        if style is not None and not isinstance(style, str):
            errors.append(f"{path}.style 必须是字符串")
        content = node.get("content")
        if not isinstance(content, list):
            errors.append(f"{path}.content 必须是数组")
            return
        for idx, item in enumerate(content):
            self._validate_node(item, f"{path}.content[{idx}]", ALLOWED_INLINE_TYPES, errors)

    def _validate_run_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        props = node.get("props", {})
        if not isinstance(props, dict):
            errors.append(f"{path}.props 必须是对象")
        content = node.get("content")
        if not isinstance(content, list):
            errors.append(f"{path}.content 必须是数组")
            return
        for idx, item in enumerate(content):
            self._validate_node(
                item, f"{path}.content[{idx}]", ALLOWED_RUN_CONTENT_TYPES, errors
            )

    def _validate_text_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        if not isinstance(node.get("text"), str):
            errors.append(f"{path}.text 必须是字符串")
        preserve = node.get("preserveSpace", False)
        if not isinstance(preserve, bool):
            errors.append(f"{path}.preserveSpace 必须是布尔值")

    def _validate_break_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        break_type = node.get("breakType", "line")
        if break_type not in ALLOWED_BREAK_TYPES:
            errors.append(f"{path}.breakType 取值非法: {break_type}")

    def _validate_drawing_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        """drawing需要src或data其一，宽高为非负整数"""
        if "src" not in node and "data" not in node:
            errors.append(f"{path} 需要 src 或 data 其一")
        for key in ("width", "height"):
            value = node.get(key, 0)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(f"{path}.{key} 必须是非负整数")

    def _validate_table_node(self, node: Dict[str, Any], path: str, errors: List[str]):
        """表格需提供rows/cells/blocks，递归校验单元格内容"""
        rows = node.get("rows")
        if not isinstance(rows, list):
            errors.append(f"{path}.rows 必须是数组")
            return
        for r_idx, row in enumerate(rows):
            row_path = f"{path}.rows[{r_idx}]"
            if isinstance(row, dict) and row.get("type") == "wrapped":
                row = row.get("value")
                row_path = f"{row_path}.value"
            cells = row.get("cells") if isinstance(row, dict) else None
            if not isinstance(cells, list):
                errors.append(f"{row_path}.cells 必须是数组")
                continue
            for c_idx, cell in enumerate(cells):
                if not isinstance(cell, dict):
                    errors.append(f"{row_path}.cells[{c_idx}] 必须是对象")
                    continue
                blocks = cell.get("blocks")
                if not isinstance(blocks, list):
                    errors.append(f"{row_path}.cells[{c_idx}].blocks 必须是数组")
                    continue
                self._validate_blocks(blocks, f"{row_path}.cells[{c_idx}].blocks", errors)


__all__ = ["DocumentValidator"]
