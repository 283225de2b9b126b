"""
参数值格式化与片段回写。

解析出的参数值先查字段格式表（完整名 `band.参数` 优先，其次裸参数名）：
    - 格式串命中某个富内容扩展时，交给扩展内联，文本替换短路；
    - 否则按值的运行时类型格式化为文本，再应用别名上的字符串变换，
      最后按别名在片段中的偏移原样替换，别名两侧的文字保持不变。
"""

from __future__ import annotations

import numbers
from datetime import date, datetime, time
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..document.nodes import Document, Run, Text
from ..utils.config import Settings, settings as default_settings
from .aliases import AliasToken
from .band import BandData
from .errors import AliasSyntaxError, ValueFormatError
from .inliners import ContentInlinerRegistry

STRING_TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "upper": str.upper,
    "lower": str.lower,
    "title": str.title,
    "capitalize": str.capitalize,
    "strip": str.strip,
}

# 解析结果：(所属band, 参数值)；返回None表示该别名留给后续阶段处理
AliasResolver = Callable[[AliasToken], Optional[Tuple[BandData, Any]]]


class ParameterFormatter:
    """
    参数格式化器。

    一次渲染共用一个实例：字段格式表来自根band，扩展注册表与配置只读。
    """

    def __init__(
        self,
        root_band: BandData,
        inliners: Optional[ContentInlinerRegistry] = None,
        config: Optional[Settings] = None,
        document: Optional[Document] = None,
    ):
        self.root_band = root_band
        self.inliners = inliners if inliners is not None else ContentInlinerRegistry()
        self.config = config or default_settings
        self.document = document

    # ===== 格式查找 =====

    def get_format_string(self, parameter_name: str, full_parameter_name: str) -> Optional[str]:
        formats = self.root_band.get_report_field_formats()
        if not formats:
            return None
        field_format = formats.get(full_parameter_name) or formats.get(parameter_name)
        return field_format.format if field_format is not None else None

    # ===== 值 → 文本 =====

    def format_value(
        self,
        value: Any,
        parameter_name: str,
        full_parameter_name: str,
        transform: Optional[str] = None,
    ) -> str:
        """
        把参数值格式化为文本。

        参数:
            value: 参数值，None 渲染为空串。
            parameter_name: 参数名。
            full_parameter_name: `band名.参数名`。
            transform: 别名上的字符串变换（可选）。

        返回:
            str: 格式化后的文本。

        异常:
            ValueFormatError: 格式串无法应用到该值上。
        """
        if value is None:
            return ""
        format_string = self.get_format_string(parameter_name, full_parameter_name)
        try:
            if format_string is not None:
                value_string = self._format_with(value, format_string)
            else:
                value_string = self._default_format(value)
        except (TypeError, ValueError) as exc:
            raise ValueFormatError(
                f"字段 [{full_parameter_name}] 无法按格式 [{format_string}] 格式化: {exc}",
                cause=exc,
            ) from exc

        if transform:
            value_string = self.apply_transform(value_string, transform)
        return value_string

    def _format_with(self, value: Any, format_string: str) -> str:
        if isinstance(value, bool):
            if ";" in format_string:
                yes, _, no = format_string.partition(";")
                return yes if value else no
            return str(value)
        if isinstance(value, numbers.Number):
            return format(value, format_string)
        if isinstance(value, (datetime, date, time)):
            return value.strftime(format_string)
        return str(value)

    def _default_format(self, value: Any) -> str:
        if isinstance(value, datetime):
            return value.strftime(self.config.DEFAULT_DATETIME_FORMAT)
        if isinstance(value, date):
            return value.strftime(self.config.DEFAULT_DATE_FORMAT)
        if isinstance(value, time):
            return value.strftime(self.config.DEFAULT_TIME_FORMAT)
        return str(value)

    def apply_transform(self, value_string: str, transform: str) -> str:
        """数字变换取第n个字符（从0开始，越界为空串）；其余按名称查表。"""
        if transform.isdigit():
            index = int(transform)
            return value_string[index] if index < len(value_string) else ""
        func = STRING_TRANSFORMS.get(transform)
        if func is None:
            raise AliasSyntaxError(f"未知的字符串变换 [{transform}]")
        return func(value_string)

    # ===== 片段回写 =====

    def fill_fragment(
        self,
        fragment: Text,
        run: Optional[Run],
        tokens: List[AliasToken],
        resolve: AliasResolver,
    ) -> bool:
        """
        按偏移把别名替换为参数文本，结果写回片段。

        tokens 必须来自 fragment 当前的文本。某个参数被富内容扩展接管时，
        已替换的部分先写回，然后由扩展处理该片段，函数立即返回。

        返回:
            bool: 是否有扩展接管了该片段。
        """
        source = fragment.value
        pieces: List[str] = []
        cursor = 0
        for token in tokens:
            resolved = resolve(token)
            if resolved is None:
                continue
            band, value = resolved
            full_parameter_name = f"{band.name}.{token.parameter_name}"

            claimed = self._find_inliner(value, token.parameter_name, full_parameter_name)
            if claimed is not None:
                inliner, match = claimed
                fragment.value = "".join(pieces) + source[cursor:]
                fragment.preserve_space = True
                inliner.inline(self.document, fragment, run, value, match, token.text)
                return True

            pieces.append(source[cursor:token.start])
            pieces.append(
                self.format_value(value, token.parameter_name, full_parameter_name, token.transform)
            )
            cursor = token.end
            logger.debug(f"别名 {token.text} → 字段 {full_parameter_name}")

        pieces.append(source[cursor:])
        fragment.value = "".join(pieces)
        fragment.preserve_space = True
        return False

    def _find_inliner(self, value: Any, parameter_name: str, full_parameter_name: str):
        if value is None or not len(self.inliners):
            return None
        format_string = self.get_format_string(parameter_name, full_parameter_name)
        if format_string is None:
            return None
        return self.inliners.find(format_string)


__all__ = ["STRING_TRANSFORMS", "ParameterFormatter"]
