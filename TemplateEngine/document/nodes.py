"""
文档树节点定义。

模板文档在内存中是一棵多态节点树：Document → 段落/表格 → 行/单元格 → Run → 文本片段。
每个节点都有稳定的 node_id（构造时分配，克隆时重新分配），
渲染流程中的登记表（父节点、表格状态等）一律以 node_id 为键，
不依赖可变对象的哈希语义。
"""

from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, List, Optional

_node_ids = itertools.count(1)


def _next_node_id() -> int:
    return next(_node_ids)


@dataclass(eq=False)
class Node:
    """
    所有节点的基类。

    kind 为节点类型标签，children_field 指明子节点列表所在的字段名，
    没有子节点的叶子节点保持为 None。
    """

    kind: ClassVar[str] = "node"
    children_field: ClassVar[Optional[str]] = None

    node_id: int = field(default_factory=_next_node_id, init=False, repr=False)


@dataclass(eq=False)
class Text(Node):
    """Run 中的最小文本片段。"""

    kind: ClassVar[str] = "text"

    value: str = ""
    preserve_space: bool = False


@dataclass(eq=False)
class Break(Node):
    kind: ClassVar[str] = "break"

    break_type: str = "line"


@dataclass(eq=False)
class Drawing(Node):
    """
    内嵌的富内容（图片等）。

    data 可以是二进制内容或文件路径，宽高单位为像素。
    """

    kind: ClassVar[str] = "drawing"

    data: Any = None
    width: int = 0
    height: int = 0
    description: str = ""


@dataclass(eq=False)
class Wrapped(Node):
    """
    包装层：某些文档来源会把真实节点包在一层延迟/命名元素里，
    遍历时需要先拆包再交给访问者。
    """

    kind: ClassVar[str] = "wrapped"

    value: Optional[Node] = None
    tag: str = ""


@dataclass(eq=False)
class Run(Node):
    """同一格式的一段内容，props 记录字体、加粗等格式属性。"""

    kind: ClassVar[str] = "run"
    children_field: ClassVar[Optional[str]] = "content"

    content: List[Node] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Paragraph(Node):
    kind: ClassVar[str] = "paragraph"
    children_field: ClassVar[Optional[str]] = "content"

    content: List[Node] = field(default_factory=list)
    style: Optional[str] = None


@dataclass(eq=False)
class Cell(Node):
    kind: ClassVar[str] = "cell"
    children_field: ClassVar[Optional[str]] = "content"

    content: List[Node] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Row(Node):
    kind: ClassVar[str] = "row"
    children_field: ClassVar[Optional[str]] = "cells"

    cells: List[Node] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Table(Node):
    kind: ClassVar[str] = "table"
    children_field: ClassVar[Optional[str]] = "rows"

    rows: List[Node] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class HeaderFooter(Node):
    """页眉或页脚部件，part 为 header/footer，variant 为 default/first/even。"""

    kind: ClassVar[str] = "header_footer"
    children_field: ClassVar[Optional[str]] = "content"

    part: str = "header"
    variant: str = "default"
    content: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class Document(Node):
    """
    文档根节点。

    body 是正文块序列；页眉页脚作为独立部件保存在 headers/footers 中，
    需要单独遍历。
    """

    kind: ClassVar[str] = "document"
    children_field: ClassVar[Optional[str]] = "body"

    name: str = ""
    body: List[Node] = field(default_factory=list)
    headers: List[HeaderFooter] = field(default_factory=list)
    footers: List[HeaderFooter] = field(default_factory=list)

    def parts(self) -> Iterator[Node]:
        """按顺序返回正文与全部页眉页脚部件。"""
        yield self
        yield from self.headers
        yield from self.footers


def unwrap(node: Any) -> Any:
    """剥掉任意层数的 Wrapped 包装，返回真实节点。"""
    while isinstance(node, Wrapped):
        node = node.value
    return node


def children_of(node: Node) -> Optional[List[Node]]:
    """返回节点的子节点列表（原列表，可原地修改）；叶子节点返回None。"""
    name = node.children_field
    if name is None:
        return None
    return getattr(node, name)


def iter_nodes(node: Node) -> Iterator[Node]:
    """先序遍历子树中的所有节点（包括包装层本身）。"""
    yield node
    if isinstance(node, Wrapped):
        if node.value is not None:
            yield from iter_nodes(node.value)
        return
    for child in children_of(node) or []:
        yield from iter_nodes(child)
    if isinstance(node, Document):
        for part in itertools.chain(node.headers, node.footers):
            yield from iter_nodes(part)


def remove_child(parent: Node, node: Node) -> bool:
    """
    从父节点的子列表中移除 node（子列表中的条目可能是包装层）。

    返回是否真的移除了节点。
    """
    children = children_of(unwrap(parent))
    if children is None:
        return False
    for idx, item in enumerate(children):
        if item is node or unwrap(item) is node:
            del children[idx]
            return True
    return False


def insert_before(parent: Node, anchor: Node, node: Node) -> None:
    """把 node 插入到父节点子列表中 anchor 的前面。"""
    children = children_of(unwrap(parent))
    for idx, item in enumerate(children or []):
        if item is anchor or unwrap(item) is anchor:
            children.insert(idx, node)
            return
    raise ValueError(f"节点 {anchor.node_id} 不在父节点 {parent.node_id} 的子列表中")


def insert_after(parent: Node, anchor: Node, node: Node) -> None:
    """把 node 插入到父节点子列表中 anchor 的后面。"""
    children = children_of(unwrap(parent))
    for idx, item in enumerate(children or []):
        if item is anchor or unwrap(item) is anchor:
            children.insert(idx + 1, node)
            return
    raise ValueError(f"节点 {anchor.node_id} 不在父节点 {parent.node_id} 的子列表中")


def clone_node(node: Node) -> Node:
    """
    深拷贝节点子树，并为拷贝中的每个节点分配新的 node_id。

    拷贝保留全部格式属性，因此克隆出来的表格行与模板行外观一致。
    """
    copied = copy.deepcopy(node)
    for item in iter_nodes(copied):
        item.node_id = _next_node_id()
    return copied


def extract_text(node: Any) -> str:
    """
    提取子树的可见文本。

    段落之间以换行分隔，避免一个段落末尾的 `${` 与下一段的 `}`
    被误拼成一个别名。
    """
    node = unwrap(node)
    if node is None:
        return ""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, Paragraph):
        return "".join(extract_text(child) for child in node.content) + "\n"
    children = children_of(node)
    if not children:
        return ""
    return "".join(extract_text(child) for child in children)


__all__ = [
    "Node",
    "Text",
    "Break",
    "Drawing",
    "Wrapped",
    "Run",
    "Paragraph",
    "Cell",
    "Row",
    "Table",
    "HeaderFooter",
    "Document",
    "unwrap",
    "children_of",
    "iter_nodes",
    "remove_child",
    "insert_before",
    "insert_after",
    "clone_node",
    "extract_text",
]
