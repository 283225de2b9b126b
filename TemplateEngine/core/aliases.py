"""
别名识别。

模板中的别名形如 `${Band.sub.field}`，可选地带一个字符串变换 `${Band.field[upper]}`。
识别分两层：
    - 通用模式 UNIVERSAL_ALIAS_PATTERN 只负责快速判断一段文本里是否"像是"有别名；
    - 严格模式 ALIAS_WITH_BAND_NAME_PATTERN 把每个别名拆成 路径 / 参数名 / 变换。
命中通用模式却无法被严格模式完整解析的文本视为语法错误。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from ..document.nodes import Paragraph, Run, Text, extract_text
from .errors import AliasSyntaxError
from .text_merger import TextMerger
from .walker import SKIP_CHILDREN, NodeVisitor, WalkContext

# 解析表达式避免使用 `.*`，保持匹配的确定性
UNIVERSAL_ALIAS_REGEXP = r"\$\{[^{}]+\}"
ALIAS_WITH_BAND_NAME_REGEXP = r"\$\{([A-Za-z0-9_.#]+?) *(?:\[([A-Za-z0-9_]+)\])?\}"
BAND_NAME_DECLARATION_REGEXP = r"##band=([A-Za-z_0-9]+) *"

UNIVERSAL_ALIAS_PATTERN = re.compile(UNIVERSAL_ALIAS_REGEXP)
ALIAS_WITH_BAND_NAME_PATTERN = re.compile(ALIAS_WITH_BAND_NAME_REGEXP)
BAND_NAME_DECLARATION_PATTERN = re.compile(BAND_NAME_DECLARATION_REGEXP)
PLAIN_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_.]+")


@dataclass(frozen=True)
class AliasToken:
    """
    一个解析后的别名。

    band_path 为最后一个点号之前的部分（可能为空，表示当前行所属的band），
    parameter_name 为最后一个点号之后的部分；start/end 是别名在源文本中的偏移。
    """

    alias: str
    band_path: str
    parameter_name: str
    transform: Optional[str] = None
    start: int = 0
    end: int = 0
    text: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.band_path.strip()) and bool(self.parameter_name.strip())

    @property
    def is_plain_identifier(self) -> bool:
        return PLAIN_IDENTIFIER_PATTERN.fullmatch(self.alias) is not None


def separate_band_path_and_parameter(alias: str) -> tuple:
    """`A.B.c` → ("A.B", "c")；没有点号时路径为空。"""
    if "." not in alias:
        return "", alias
    band_path, _, parameter_name = alias.rpartition(".")
    return band_path, parameter_name


class AliasDetector:
    """在文本中查找并解析别名。"""

    def paragraph_has_aliases(self, text: str) -> bool:
        """通用模式快速判定，用于跳过没有别名的段落。"""
        return bool(text) and UNIVERSAL_ALIAS_PATTERN.search(text) is not None

    def find_aliases(self, text: str) -> List[AliasToken]:
        """
        返回文本中的全部别名（按出现顺序）。

        异常:
            AliasSyntaxError: 命中通用模式的文本无法被严格解析。
        """
        tokens: List[AliasToken] = []
        for candidate in UNIVERSAL_ALIAS_PATTERN.finditer(text):
            strict = ALIAS_WITH_BAND_NAME_PATTERN.fullmatch(candidate.group())
            if strict is None:
                raise AliasSyntaxError(f"无法解析的别名: {candidate.group()}")
            alias = strict.group(1)
            band_path, parameter_name = separate_band_path_and_parameter(alias)
            tokens.append(
                AliasToken(
                    alias=alias,
                    band_path=band_path,
                    parameter_name=parameter_name,
                    transform=strict.group(2),
                    start=candidate.start(),
                    end=candidate.end(),
                    text=candidate.group(),
                )
            )
        return tokens

    def document_aliases(self, text: str) -> List[AliasToken]:
        """
        文档级替换使用的别名列表。

        路径或参数名为空、但本身是普通标识符的别名（例如 `${qty}`）是
        表格行里没有被展开的行内别名，按普通文本保留；其余不完整的别名
        视为错误。
        """
        result: List[AliasToken] = []
        for token in self.find_aliases(text):
            if token.is_complete:
                result.append(token)
                continue
            if token.is_plain_identifier:
                logger.warning(f"跳过缺少band路径的别名 {token.text}，按普通文本保留")
                continue
            raise AliasSyntaxError(f"别名缺少band路径或参数名: {text}")
        return result


class AliasVisitor(NodeVisitor):
    """
    段落级别名访问者。

    段落全文命中通用模式时，先合并被切碎的片段，再把每个合并后的起点片段
    交给子类的 handle 处理；段落内部不再下钻。
    """

    def __init__(self, detector: Optional[AliasDetector] = None):
        self.detector = detector or AliasDetector()

    def visit_paragraph(self, paragraph: Paragraph, parent, context: WalkContext):
        if self.detector.paragraph_has_aliases(extract_text(paragraph)):
            merger = TextMerger(paragraph, UNIVERSAL_ALIAS_REGEXP, parents=context.parents)
            for fragment in merger.merge_matched_texts():
                run = context.parents.get(fragment.node_id)
                self.handle(fragment, run if isinstance(run, Run) else None, context)
        return SKIP_CHILDREN

    def handle(self, fragment: Text, run: Optional[Run], context: WalkContext) -> None:
        raise NotImplementedError


__all__ = [
    "AliasVisitor",
    "UNIVERSAL_ALIAS_REGEXP",
    "ALIAS_WITH_BAND_NAME_REGEXP",
    "BAND_NAME_DECLARATION_REGEXP",
    "UNIVERSAL_ALIAS_PATTERN",
    "ALIAS_WITH_BAND_NAME_PATTERN",
    "BAND_NAME_DECLARATION_PATTERN",
    "AliasToken",
    "AliasDetector",
    "separate_band_path_and_parameter",
]
