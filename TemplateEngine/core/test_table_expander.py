"""
表格分类与模板行展开的测试用例。

运行测试：
    python -m pytest TemplateEngine/core/test_table_expander.py -v
"""

import pytest

from TemplateEngine.core.band import BandData
from TemplateEngine.core.errors import ParameterMissingError
from TemplateEngine.core.filler import render
from TemplateEngine.core.table_expander import RowAliasFiller, TableCollector, TableState
from TemplateEngine.core.walker import walk
from TemplateEngine.document.nodes import (
    Cell,
    Document,
    HeaderFooter,
    Paragraph,
    Row,
    Run,
    Table,
    Text,
    extract_text,
    iter_nodes,
    unwrap,
)
from TemplateEngine.document.serializer import document_to_dict


def _paragraph(*fragments, props=None):
    return Paragraph(content=[Run(content=[Text(value)], props=dict(props or {})) for value in fragments])


def _row(*cell_texts):
    return Row(cells=[Cell(content=[_paragraph(text)]) for text in cell_texts])


def _row_texts(table):
    return [
        [extract_text(cell).strip() for cell in unwrap(row).cells]
        for row in table.rows
    ]


def _data(count):
    root = BandData("Root", data={"title": "Orders"})
    main = root.add_child(BandData("Main", data={"customer": "ACME"}))
    for idx in range(count):
        main.add_child(BandData("Items", data={"name": f"item{idx}", "qty": idx}))
    return root


class TestTableCollector:
    """测试表格分类状态机"""

    def test_band_declared_table(self):
        table = Table(rows=[_row("##band=Items Name", "Qty"), _row("${name}", "${qty}")])
        collector = TableCollector()
        walk(Document(body=[table]), collector)

        managers = list(collector.table_managers.values())
        assert len(managers) == 1
        manager = managers[0]
        assert manager.state is TableState.BAND_DECLARED
        assert manager.band_name == "Items"
        assert manager.row_with_aliases is table.rows[1]
        # 声明标记已从首行剥除
        assert _row_texts(table)[0] == ["Name", "Qty"]

    def test_marker_split_across_runs_is_stripped(self):
        paragraph = _paragraph("##ba", "nd=Items ", "Name")
        table = Table(rows=[Row(cells=[Cell(content=[paragraph])]), _row("${name}")])
        collector = TableCollector()
        walk(Document(body=[table]), collector)

        assert extract_text(paragraph) == "Name\n"
        assert [m.band_name for m in collector.table_managers.values()] == ["Items"]

    def test_table_without_marker_is_rejected(self):
        table = Table(rows=[_row("A", "B"), _row("${Main.customer}", "x")])
        collector = TableCollector()
        walk(Document(body=[table]), collector)
        assert collector.table_managers == {}

    def test_nested_tables_have_independent_state(self):
        """测试被拒绝的外层表格不影响嵌套表格的分类"""
        inner = Table(rows=[_row("##band=Items ${name}")])
        outer = Table(rows=[_row("plain"), Row(cells=[Cell(content=[inner])])])
        collector = TableCollector()
        walk(Document(body=[outer]), collector)

        assert list(collector.table_managers) == [inner.node_id]

    def test_last_declaration_wins(self):
        table = Table(rows=[
            Row(cells=[
                Cell(content=[_paragraph("##band=First A")]),
                Cell(content=[_paragraph("##band=Second B")]),
            ]),
            _row("${name}"),
        ])
        collector = TableCollector()
        walk(Document(body=[table]), collector)

        manager = collector.table_managers[table.node_id]
        assert manager.band_name == "Second"
        assert _row_texts(table)[0] == ["A", "B"]


class TestTableExpansion:
    """测试模板行按band实例展开"""

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_row_count_matches_instances(self, count):
        """测试0/1/5个实例，模板行均被移除"""
        template = Document(name="items", body=[Table(rows=[_row("##band=Items ${name}", "${qty}")])])

        filled = render(template, _data(count))

        table = filled.body[0]
        assert _row_texts(table) == [[f"item{idx}", str(idx)] for idx in range(count)]
        assert not any("${" in extract_text(row) for row in table.rows)

    def test_header_and_footer_rows_kept(self):
        template = Document(body=[Table(rows=[
            _row("##band=Items Name", "Qty"),
            _row("${name}", "${Items.qty}"),
            _row("Total", "${Main.customer}"),
        ])])

        filled = render(template, _data(2))

        assert _row_texts(filled.body[0]) == [
            ["Name", "Qty"],
            ["item0", "0"],
            ["item1", "1"],
            ["Total", "ACME"],
        ]

    def test_other_paths_deferred_to_document_pass(self):
        template = Document(body=[Table(rows=[_row("##band=Items ${name} @ ${Main.customer}")])])
        filled = render(template, _data(2))
        assert _row_texts(filled.body[0]) == [["item0 @ ACME"], ["item1 @ ACME"]]

    def test_full_path_to_row_band_uses_each_instance(self):
        """测试以行band结尾的完整路径按当前实例取值，而不是第一个实例"""
        template = Document(body=[Table(rows=[
            _row("##band=Items head"),
            _row("${Main.Items.qty}"),
        ])])

        filled = render(template, _data(3))

        assert _row_texts(filled.body[0]) == [["head"], ["0"], ["1"], ["2"]]

    def test_row_band_path_matching(self):
        filler = RowAliasFiller(_data(1).find_band_recursively("Items"), formatter=None)
        assert filler.refers_to_row_band("")
        assert filler.refers_to_row_band("Items")
        assert filler.refers_to_row_band("Main.Items")
        assert not filler.refers_to_row_band("Main")
        assert not filler.refers_to_row_band("Main.Items.Detail")

    def test_header_table_marker_stripped_without_expansion(self):
        """测试页眉表格只剥除声明标记，不按band展开"""
        template = Document(
            body=[_paragraph("body")],
            headers=[HeaderFooter(part="header", content=[
                Table(rows=[_row("##band=Items Title"), _row("${Main.customer}")]),
            ])],
        )

        filled = render(template, _data(3))

        assert _row_texts(filled.headers[0].content[0]) == [["Title"], ["ACME"]]
        assert "##band" not in extract_text(filled.headers[0])

    def test_clones_keep_formatting_and_get_new_ids(self):
        template_row = Row(cells=[Cell(content=[_paragraph("##band=Items ${name}", props={"bold": True})])])
        template = Document(body=[Table(rows=[template_row])])

        filled = render(template, _data(2))

        rows = filled.body[0].rows
        runs = [node for row in rows for node in iter_nodes(row) if isinstance(node, Run)]
        assert all(run.props == {"bold": True} for run in runs)
        assert rows[0].node_id != rows[1].node_id

    def test_rejected_table_gets_document_substitution(self):
        template = Document(body=[Table(rows=[_row("A", "B"), _row("${Main.customer}", "x")])])
        filled = render(template, _data(3))
        assert _row_texts(filled.body[0]) == [["A", "B"], ["ACME", "x"]]

    def test_nested_band_table_inside_rejected_table(self):
        inner = Table(rows=[_row("##band=Items ${name}")])
        outer = Table(rows=[_row("${qty}"), Row(cells=[Cell(content=[inner])])])
        template = Document(body=[outer])

        filled = render(template, _data(3))

        filled_outer = filled.body[0]
        filled_inner = filled_outer.rows[1].cells[0].content[0]
        # 外层表格未声明band，行内别名按普通文本保留
        assert _row_texts(filled_outer)[0] == ["${qty}"]
        assert _row_texts(filled_inner) == [["item0"], ["item1"], ["item2"]]

    def test_declared_table_without_template_row(self):
        template = Document(body=[Table(rows=[_row("##band=Items Header"), _row("static")])])
        filled = render(template, _data(3))
        assert _row_texts(filled.body[0]) == [["Header"], ["static"]]

    def test_unknown_band_produces_empty_table(self):
        template = Document(body=[Table(rows=[_row("##band=Nope ${name}")])])
        filled = render(template, _data(3))
        assert filled.body[0].rows == []

    def test_missing_row_parameter_aborts(self):
        template = Document(name="items", body=[Table(rows=[_row("##band=Items ${missing}")])])
        before = document_to_dict(template)

        with pytest.raises(ParameterMissingError) as exc_info:
            render(template, _data(2))

        assert exc_info.value.template_name == "items"
        assert document_to_dict(template) == before
