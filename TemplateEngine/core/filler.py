"""
模板填充入口。

DocumentFiller 把各个组件串起来：
    1. 表格分类与模板行展开（会改变行数，必须先于文本替换完成），
       页眉页脚中的band表格只剥除声明标记、不展开；
    2. 正文、页眉、页脚中的别名逐段落替换。
任何识别/解析错误都会中止整次渲染，并补齐模板名称后抛出。
render() 在模板的深拷贝上工作，失败时调用方手里的模板保持原样。
"""

from __future__ import annotations

import itertools
from typing import Any, Optional, Tuple

from loguru import logger

from ..document.nodes import Document, Run, Text, clone_node
from ..utils.config import Settings
from .aliases import AliasDetector, AliasToken, AliasVisitor
from .band import BandData, find_band_by_path
from .errors import TemplateError
from .formatter import ParameterFormatter
from .inliners import ContentInlinerRegistry
from .table_expander import TableExpander
from .walker import WalkContext, walk


class DocumentAliasFiller(AliasVisitor):
    """文档级别名替换：按完整路径从根band逐级解析。"""

    def __init__(self, root_band: BandData, formatter: ParameterFormatter,
                 detector: Optional[AliasDetector] = None):
        super().__init__(detector)
        self.root_band = root_band
        self.formatter = formatter

    def handle(self, fragment: Text, run: Optional[Run], context: WalkContext) -> None:
        tokens = self.detector.document_aliases(fragment.value)
        if tokens:
            self.formatter.fill_fragment(fragment, run, tokens, self._resolve)

    def _resolve(self, token: AliasToken) -> Tuple[BandData, Any]:
        band = find_band_by_path(self.root_band, token.band_path)
        return band, band.get_parameter_value(token.parameter_name)


class DocumentFiller:
    """
    单次渲染的编排器（原地修改传入的文档）。

    Args:
        document: 待填充的文档树，会被原地修改。
        root_band: 报表数据根band。
        inliners: 富内容扩展注册表，缺省为空。
        config: 配置，缺省使用全局 settings。
    """

    def __init__(
        self,
        document: Document,
        root_band: BandData,
        inliners: Optional[ContentInlinerRegistry] = None,
        config: Optional[Settings] = None,
    ):
        self.document = document
        self.root_band = root_band
        self.detector = AliasDetector()
        self.formatter = ParameterFormatter(root_band, inliners, config, document=document)
        self.table_expander = TableExpander(root_band, self.formatter, self.detector)

    def fill(self) -> Document:
        name = self.document.name or "<unnamed>"
        logger.info(f"开始填充模板 {name}，根band: {self.root_band.name}")
        context = WalkContext()
        try:
            managers = self.table_expander.collect_tables(self.document, context)
            self.table_expander.fill_tables(managers, context)
            for part in itertools.chain(self.document.headers, self.document.footers):
                self.table_expander.strip_band_markers(part, context)
            self.replace_all_aliases_in_document(context)
        except TemplateError as exc:
            exc.with_template(self.document.name)
            logger.error(f"模板 {name} 填充失败: {exc}")
            raise
        except Exception as exc:
            logger.exception(f"模板 {name} 填充时发生未预期的异常: {exc}")
            raise TemplateError(
                f"填充模板时发生错误: {exc}", cause=exc, template_name=self.document.name
            ) from exc
        logger.info(f"模板 {name} 填充完成，共处理 {len(managers)} 个band表格")
        return self.document

    def replace_all_aliases_in_document(self, context: Optional[WalkContext] = None) -> None:
        context = context or WalkContext()
        visitor = DocumentAliasFiller(self.root_band, self.formatter, self.detector)
        for part in self.document.parts():
            walk(part, visitor, context)


def render(
    template: Document,
    data: BandData,
    inliners: Optional[ContentInlinerRegistry] = None,
    config: Optional[Settings] = None,
) -> Document:
    """
    用报表数据填充模板，返回填充后的新文档树。

    参数:
        template: 模板文档（不会被修改）。
        data: 报表数据根band。
        inliners: 富内容扩展注册表（可选）。
        config: 配置（可选）。

    返回:
        Document: 填充结果。

    异常:
        TemplateError 及其子类：别名语法错误、band不存在、参数缺失等。
    """
    filled = clone_node(template)
    return DocumentFiller(filled, data, inliners, config).fill()


__all__ = ["DocumentAliasFiller", "DocumentFiller", "render"]
