"""
表格行展开。

声明了band的表格（首行含 `##band=名称` 标记）在填充阶段按band实例复制模板行：

    分类阶段（遍历时）：
        Unclassified ──首行含标记──▶ BandDeclared（剥掉标记文字）
                     └─首行无标记──▶ Rejected（本表后续行全部忽略，嵌套表格照常处理）
        BandDeclared 下第一个含别名的行成为模板行（可以就是首行本身）。

    填充阶段（所有表格分类完成后）：
        找出根band下所有名为 bandName 的实例，按顺序逐个克隆模板行插到模板行之前，
        用该实例的参数替换行内别名，最后删除模板行。实例为零时结果为空表，不算错误。
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from ..document.nodes import (
    Document,
    Node,
    Paragraph,
    Row,
    Run,
    Table,
    Text,
    clone_node,
    extract_text,
    insert_before,
    iter_nodes,
    remove_child,
)
from .aliases import BAND_NAME_DECLARATION_PATTERN, AliasDetector, AliasToken, AliasVisitor
from .band import BandData
from .formatter import ParameterFormatter
from .text_merger import merge_literal
from .walker import SKIP_CHILDREN, NodeVisitor, WalkContext, walk


class TableState(Enum):
    UNCLASSIFIED = "unclassified"
    REJECTED = "rejected"
    BAND_DECLARED = "band_declared"


class TableManager:
    """单个表格在一次渲染中的临时状态。"""

    def __init__(self, table: Table):
        self.table = table
        self.state = TableState.UNCLASSIFIED
        self.first_row: Optional[Row] = None
        self.row_with_aliases: Optional[Row] = None
        self.band_name: Optional[str] = None

    def __repr__(self) -> str:
        return f"TableManager(table={self.table.node_id}, state={self.state.value}, band={self.band_name!r})"

    @property
    def template_row_found(self) -> bool:
        return self.row_with_aliases is not None

    def copy_row(self, row: Row) -> Row:
        """克隆 row 并插到它前面，返回克隆行。"""
        copied = clone_node(row)
        insert_before(self.table, row, copied)
        return copied

    def remove_template_row(self) -> None:
        if self.row_with_aliases is not None:
            remove_child(self.table, self.row_with_aliases)


class TableCollector(NodeVisitor):
    """
    分类访问者：进入表格时为其建立新的 TableManager 作用域，
    逐行推进状态机，声明了band的表格按文档顺序登记。
    """

    def __init__(self, detector: Optional[AliasDetector] = None):
        self.detector = detector or AliasDetector()
        self.table_managers: Dict[int, TableManager] = {}

    def enter(self, node: Node, context: WalkContext) -> WalkContext:
        if isinstance(node, Table):
            return context.derive(scope=TableManager(node))
        return context

    def visit_row(self, row: Row, parent: Node, context: WalkContext):
        manager = context.scope
        if not isinstance(manager, TableManager) or manager.state is TableState.REJECTED:
            return None

        if manager.first_row is None:
            manager.first_row = row
            self._find_name_for_table(manager, context)
            if manager.band_name is None:
                manager.state = TableState.REJECTED
                return None
            manager.state = TableState.BAND_DECLARED
            self.table_managers[manager.table.node_id] = manager
            logger.debug(f"表格 {manager.table.node_id} 声明band: {manager.band_name}")

        if manager.row_with_aliases is None:
            if self.detector.paragraph_has_aliases(extract_text(row)):
                manager.row_with_aliases = row
        return None

    def _find_name_for_table(self, manager: TableManager, context: WalkContext) -> None:
        for node in iter_nodes(manager.first_row):
            if not isinstance(node, Paragraph):
                continue
            text = extract_text(node)
            if not text.strip():
                continue
            match = BAND_NAME_DECLARATION_PATTERN.search(text)
            if match is None:
                continue
            manager.band_name = match.group(1)
            declaration = match.group()
            for fragment in merge_literal(node, declaration, context.parents):
                fragment.value = fragment.value.replace(declaration, "")


class RowAliasFiller(AliasVisitor):
    """
    在克隆行内替换别名。

    只处理路径为空或最后一级等于当前band名的别名（`${qty}`、`${Items.qty}`、
    `${Main.Items.qty}`），参数直接取自该band实例；其它路径的别名保留给文档级替换。
    行内的嵌套表格不在这里处理。
    """

    def __init__(self, band: BandData, formatter: ParameterFormatter,
                 detector: Optional[AliasDetector] = None):
        super().__init__(detector)
        self.band = band
        self.formatter = formatter

    def visit_table(self, table: Table, parent: Node, context: WalkContext):
        return SKIP_CHILDREN

    def handle(self, fragment: Text, run: Optional[Run], context: WalkContext) -> None:
        tokens = self.detector.find_aliases(fragment.value)
        self.formatter.fill_fragment(fragment, run, tokens, self._resolve)

    def _resolve(self, token: AliasToken) -> Optional[Tuple[BandData, Any]]:
        if not self.refers_to_row_band(token.band_path) or not token.parameter_name:
            return None
        return self.band, self.band.get_parameter_value(token.parameter_name)

    def refers_to_row_band(self, band_path: str) -> bool:
        """空路径、以当前band名结尾的路径（如 `Main.Items`）都指向当前行的实例。"""
        if not band_path:
            return True
        return band_path.rpartition(".")[2] == self.band.name


class TableExpander:
    """表格分类 + 模板行展开。"""

    def __init__(
        self,
        root_band: BandData,
        formatter: ParameterFormatter,
        detector: Optional[AliasDetector] = None,
    ):
        self.root_band = root_band
        self.formatter = formatter
        self.detector = detector or AliasDetector()

    def collect_tables(self, document: Node, context: Optional[WalkContext] = None) -> List[TableManager]:
        """遍历文档，返回声明了band的表格（文档顺序）。"""
        collector = TableCollector(self.detector)
        walk(document, collector, context)
        return list(collector.table_managers.values())

    def fill_tables(self, managers: List[TableManager], context: Optional[WalkContext] = None) -> int:
        """
        展开所有找到模板行的表格，返回插入的总行数。

        找不到模板行的表格保持原样（声明标记已在分类时剥除）。
        """
        context = context or WalkContext()
        inserted = 0
        for manager in managers:
            if not manager.template_row_found:
                logger.debug(f"表格 {manager.table.node_id} (band={manager.band_name}) 没有模板行，跳过")
                continue
            bands = self.root_band.find_bands_recursively(manager.band_name)
            for band in bands:
                new_row = manager.copy_row(manager.row_with_aliases)
                self.fill_row_from_band(new_row, band, context)
            manager.remove_template_row()
            inserted += len(bands)
            logger.info(f"表格 band={manager.band_name} 展开为 {len(bands)} 行")
        return inserted

    def strip_band_markers(self, part: Node, context: Optional[WalkContext] = None) -> int:
        """
        只分类、不展开：页眉页脚中的band表格剥掉声明标记后保持原有行。

        返回剥除了标记的表格数。
        """
        managers = self.collect_tables(part, context)
        for manager in managers:
            logger.debug(f"页眉/页脚表格 band={manager.band_name} 不展开，仅剥除声明标记")
        return len(managers)

    def fill_row_from_band(self, row: Row, band: BandData, context: Optional[WalkContext] = None) -> None:
        walk(row, RowAliasFiller(band, self.formatter, self.detector), context)

    def expand(self, document: Document, context: Optional[WalkContext] = None) -> List[TableManager]:
        context = context or WalkContext()
        managers = self.collect_tables(document, context)
        self.fill_tables(managers, context)
        return managers


__all__ = [
    "TableState",
    "TableManager",
    "TableCollector",
    "RowAliasFiller",
    "TableExpander",
]
