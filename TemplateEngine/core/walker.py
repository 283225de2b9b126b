"""
通用的文档树遍历器。

walk 以深度优先、先序的方式访问节点的所有子孙：
    - 访问前先剥掉包装层；
    - 把父节点登记到上下文的 parents 表（以 node_id 为键），供后续删除/插入使用；
    - 访问者返回 SKIP_CHILDREN 时不再下钻；
    - 下钻前调用访问者的 enter 钩子，由它决定子树使用的上下文，
      表格级的临时状态就是这样显式地随参数传递下去的。
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..document.nodes import Node, children_of, remove_child, unwrap


class WalkSignal(Enum):
    CONTINUE = "continue"
    SKIP_CHILDREN = "skip_children"


SKIP_CHILDREN = WalkSignal.SKIP_CHILDREN


@dataclass
class WalkContext:
    """
    一次遍历的上下文。

    parents 在派生出的子上下文之间共享；scope 是访问者自定义的局部状态
    （例如当前所在表格），只对当前子树可见。
    """

    parents: Dict[int, Node] = field(default_factory=dict)
    scope: Any = None

    def derive(self, **changes: Any) -> "WalkContext":
        """派生子树上下文，parents 登记表保持共享。"""
        return dataclasses.replace(self, **changes)

    def parent_of(self, node: Node) -> Optional[Node]:
        return self.parents.get(node.node_id)

    def detach(self, node: Node) -> bool:
        """借助父节点登记表把节点从树中摘除。"""
        parent = self.parent_of(node)
        if parent is None:
            return False
        removed = remove_child(parent, node)
        if removed:
            self.parents.pop(node.node_id, None)
        return removed


class NodeVisitor:
    """
    访问者基类。

    visit 按节点类型分派到 `visit_<kind>` 方法（如 visit_paragraph、visit_row），
    未定义对应方法的节点类型直接放行。
    """

    def visit(self, node: Node, parent: Node, context: WalkContext) -> Optional[WalkSignal]:
        handler = getattr(self, f"visit_{node.kind}", None)
        if handler is None:
            return None
        return handler(node, parent, context)

    def enter(self, node: Node, context: WalkContext) -> WalkContext:
        """进入 node 的子树前调用，返回子树使用的上下文。"""
        return context


def walk(
    node: Node, visitor: NodeVisitor, context: Optional[WalkContext] = None
) -> WalkContext:
    """
    深度优先先序遍历 node 的全部子孙节点。

    参数:
        node: 遍历起点（起点本身不会交给访问者）。
        visitor: 访问者实例。
        context: 已有的遍历上下文，缺省时新建。

    返回:
        WalkContext: 遍历使用的上下文，其中 parents 记录了所有访问过节点的父节点。
    """
    if context is None:
        context = WalkContext()
    parent = unwrap(node)
    children = children_of(parent) if parent is not None else None
    if not children:
        return context

    # 遍历快照：访问者可以放心地修改当前子列表
    for child in list(children):
        real = unwrap(child)
        if real is None:
            continue
        context.parents[real.node_id] = parent
        signal = visitor.visit(real, parent, context)
        if signal is WalkSignal.SKIP_CHILDREN:
            continue
        if children_of(real) is not None:
            walk(real, visitor, visitor.enter(real, context))
    return context


__all__ = ["WalkSignal", "SKIP_CHILDREN", "WalkContext", "NodeVisitor", "walk"]
