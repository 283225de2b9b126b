"""
别名识别的测试用例。

运行测试：
    python -m pytest TemplateEngine/core/test_aliases.py -v
"""

import pytest

from TemplateEngine.core.aliases import AliasDetector, separate_band_path_and_parameter
from TemplateEngine.core.errors import AliasSyntaxError


class TestAliasDetector:
    """测试AliasDetector类"""

    def setup_method(self):
        """每个测试前初始化"""
        self.detector = AliasDetector()

    def test_paragraph_has_aliases(self):
        """测试通用模式的快速判定"""
        assert self.detector.paragraph_has_aliases("Hello ${Main.name}")
        assert not self.detector.paragraph_has_aliases("Hello $ {Main.name}")
        assert not self.detector.paragraph_has_aliases("")

    def test_path_and_parameter(self):
        """测试路径在最后一个点号处拆分"""
        text = "x ${Main.Detail.amount} y"
        tokens = self.detector.find_aliases(text)

        assert len(tokens) == 1
        token = tokens[0]
        assert token.band_path == "Main.Detail"
        assert token.parameter_name == "amount"
        assert token.transform is None
        assert text[token.start:token.end] == "${Main.Detail.amount}"
        assert token.is_complete

    def test_transform_suffix(self):
        """测试可选的字符串变换"""
        upper, digit = self.detector.find_aliases("${Main.name[upper]} ${Main.code [2]}")
        assert upper.transform == "upper"
        assert upper.parameter_name == "name"
        assert digit.transform == "2"
        assert digit.parameter_name == "code"

    def test_bare_alias(self):
        """测试不带路径的行内别名"""
        token = self.detector.find_aliases("${qty}")[0]
        assert token.band_path == ""
        assert token.parameter_name == "qty"
        assert not token.is_complete
        assert token.is_plain_identifier

    def test_malformed_alias_raises(self):
        """测试无法严格解析的别名"""
        with pytest.raises(AliasSyntaxError):
            self.detector.find_aliases("${Main.a b}")

    def test_document_aliases_skip_leftover_row_alias(self):
        """测试文档级替换跳过普通标识符形式的行内别名"""
        tokens = self.detector.document_aliases("${qty} and ${Main.total}")
        assert [token.alias for token in tokens] == ["Main.total"]

    def test_document_aliases_reject_incomplete(self):
        """测试不完整且非普通标识符的别名"""
        with pytest.raises(AliasSyntaxError):
            self.detector.document_aliases("${#x}")

    def test_multiple_aliases_keep_order(self):
        tokens = self.detector.find_aliases("${A.x}-${B.y}-${C.z}")
        assert [token.band_path for token in tokens] == ["A", "B", "C"]
        assert tokens[0].end <= tokens[1].start


class TestSeparateBandPathAndParameter:
    def test_split(self):
        assert separate_band_path_and_parameter("A.B.c") == ("A.B", "c")
        assert separate_band_path_and_parameter("c") == ("", "c")
