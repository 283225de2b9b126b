"""
报表数据树与路径解析的测试用例。

运行测试：
    python -m pytest TemplateEngine/core/test_band.py -v
"""

import json

import pytest

from TemplateEngine.core.band import BandData, find_band_by_path, load_band_data
from TemplateEngine.core.errors import BandNotFoundError, ParameterMissingError, TemplateLoadError


class TestBandData:
    """测试BandData类"""

    def setup_method(self):
        """Root → Main → Detail×3"""
        self.root = BandData("Root", data={"title": "Orders"})
        self.main = self.root.add_child(BandData("Main", data={"qty": 3, "note": None}))
        self.details = [
            self.main.add_child(BandData("Detail", data={"amount": amount}))
            for amount in (10, 20, 30)
        ]

    def test_path_resolves_first_instance(self):
        """测试路径解析取第一个实例"""
        band = find_band_by_path(self.root, "Main.Detail")
        assert band is self.details[0]
        assert band.get_parameter_value("amount") == 10

    def test_recursive_search_returns_all_instances(self):
        """测试递归收集全部同名实例"""
        bands = self.root.find_bands_recursively("Detail")
        assert [band.get_parameter_value("amount") for band in bands] == [10, 20, 30]

    def test_recursive_search_includes_self(self):
        assert self.root.find_bands_recursively("Root") == [self.root]
        assert self.root.find_band_recursively("Detail") is self.details[0]

    def test_strict_descent(self):
        """测试逐级下降，不会跨分支搜索同名band"""
        other = self.root.add_child(BandData("Other"))
        other.add_child(BandData("Detail", data={"amount": 99}))

        assert find_band_by_path(self.root, "Other.Detail").get_parameter_value("amount") == 99
        with pytest.raises(BandNotFoundError):
            find_band_by_path(self.root, "Detail")

    def test_missing_intermediate_band(self):
        """测试中间某一级不存在"""
        with pytest.raises(BandNotFoundError) as exc_info:
            find_band_by_path(self.root, "Main.Missing.Detail")
        assert "Main.Missing" in exc_info.value.message

    def test_root_name_resolves_to_root(self):
        assert find_band_by_path(self.root, "Root") is self.root

    def test_missing_versus_null_parameter(self):
        """测试参数为None与参数缺失的区别"""
        assert self.main.get_parameter_value("note") is None
        with pytest.raises(ParameterMissingError):
            self.main.get_parameter_value("absent")

    def test_parent_links(self):
        detail = self.details[1]
        assert detail.parent is self.main
        assert detail.root is self.root
        assert detail.full_name == "Main.Detail"
        assert self.main.get_children_by_name("Detail") == self.details


class TestBandFromDict:
    """测试从字典构建band树"""

    def setup_method(self):
        self.payload = {
            "name": "Root",
            "parameters": {"title": "Invoice"},
            "children": {
                "Main": {
                    "parameters": {"customer": "ACME"},
                    "children": {
                        "Items": [
                            {"parameters": {"price": 1.5}},
                            {"parameters": {"price": 2.25}},
                        ]
                    },
                }
            },
            "fieldFormats": {"Items.price": ",.2f"},
        }

    def test_structure(self):
        root = BandData.from_dict(self.payload)
        items = root.find_bands_recursively("Items")

        assert root.name == "Root"
        assert find_band_by_path(root, "Main").get_parameter_value("customer") == "ACME"
        assert [band.get_parameter_value("price") for band in items] == [1.5, 2.25]
        assert items[0].full_name == "Main.Items"

    def test_field_formats_live_on_root(self):
        root = BandData.from_dict(self.payload)
        item = root.find_band_recursively("Items")
        assert root.get_report_field_formats()["Items.price"].format == ",.2f"
        assert item.get_report_field_formats() is root.report_field_formats

    def test_rejects_non_object(self):
        with pytest.raises(TemplateLoadError):
            BandData.from_dict(["not", "a", "band"])

    def test_load_band_data(self, tmp_path):
        """测试从JSON文件读取"""
        path = tmp_path / "data.json"
        path.write_text(json.dumps(self.payload), encoding="utf-8")

        root = load_band_data(path)
        assert root.get_parameter_value("title") == "Invoice"

    def test_load_band_data_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TemplateLoadError):
            load_band_data(path)
