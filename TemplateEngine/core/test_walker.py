"""
文档树遍历器的测试用例。

运行测试：
    python -m pytest TemplateEngine/core/test_walker.py -v
"""

from TemplateEngine.core.walker import SKIP_CHILDREN, NodeVisitor, WalkContext, walk
from TemplateEngine.document.nodes import (
    Cell,
    Document,
    Paragraph,
    Row,
    Run,
    Table,
    Text,
    Wrapped,
)


def _paragraph(*fragments):
    return Paragraph(content=[Run(content=[Text(value) for value in fragments])])


class RecordingVisitor(NodeVisitor):
    """记录访问顺序的访问者"""

    def __init__(self, skip_kinds=()):
        self.visited = []
        self.skip_kinds = set(skip_kinds)

    def visit(self, node, parent, context):
        self.visited.append(node.kind)
        if node.kind in self.skip_kinds:
            return SKIP_CHILDREN
        return None


class TestWalk:
    """测试遍历顺序、拆包与父节点登记"""

    def setup_method(self):
        self.document = Document(
            name="walk",
            body=[
                _paragraph("a"),
                Table(rows=[Row(cells=[Cell(content=[_paragraph("b")])])]),
            ],
        )

    def test_pre_order_depth_first(self):
        visitor = RecordingVisitor()
        walk(self.document, visitor)
        assert visitor.visited == [
            "paragraph", "run", "text",
            "table", "row", "cell", "paragraph", "run", "text",
        ]

    def test_skip_children_signal(self):
        visitor = RecordingVisitor(skip_kinds={"table"})
        walk(self.document, visitor)
        assert visitor.visited == ["paragraph", "run", "text", "table"]

    def test_wrapped_nodes_are_unwrapped(self):
        text = Text("x")
        run = Run(content=[Wrapped(value=text, tag="lazy")])
        paragraph = Paragraph(content=[run])
        document = Document(body=[paragraph])

        visitor = RecordingVisitor()
        context = walk(document, visitor)

        assert "wrapped" not in visitor.visited
        assert context.parent_of(text) is run
        assert context.parent_of(paragraph) is document

    def test_detach_uses_parent_registry(self):
        text = Text("x")
        run = Run(content=[Wrapped(value=text)])
        document = Document(body=[Paragraph(content=[run])])

        context = walk(document, RecordingVisitor())

        assert context.detach(text) is True
        assert run.content == []
        assert context.parent_of(text) is None

    def test_dispatch_by_kind(self):
        class ParagraphCounter(NodeVisitor):
            def __init__(self):
                self.count = 0

            def visit_paragraph(self, node, parent, context):
                self.count += 1
                return SKIP_CHILDREN

        counter = ParagraphCounter()
        walk(self.document, counter)
        assert counter.count == 2

    def test_enter_threads_scope_per_table(self):
        class ScopeVisitor(NodeVisitor):
            def __init__(self):
                self.seen = []

            def enter(self, node, context):
                if isinstance(node, Table):
                    return context.derive(scope=node.node_id)
                return context

            def visit_row(self, node, parent, context):
                self.seen.append(context.scope)

        inner = Table(rows=[Row()])
        outer = Table(rows=[Row(cells=[Cell(content=[inner])]), Row()])
        visitor = ScopeVisitor()
        walk(Document(body=[outer]), visitor)

        assert visitor.seen == [outer.node_id, inner.node_id, outer.node_id]

    def test_derived_context_shares_parents(self):
        context = WalkContext()
        child = context.derive(scope="table")
        assert child.parents is context.parents
        assert child.scope == "table"
        assert context.scope is None

    def test_visitor_may_mutate_children(self):
        class Remover(NodeVisitor):
            def visit_paragraph(self, node, parent, context):
                context.detach(node)
                return SKIP_CHILDREN

        document = Document(body=[_paragraph("a"), _paragraph("b")])
        walk(document, Remover())
        assert document.body == []
