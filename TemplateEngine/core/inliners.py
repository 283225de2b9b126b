"""
富内容内联扩展。

当某个字段的格式串命中扩展的 tag_pattern 时，由扩展接管该参数值，
自行修改文档树（例如插入图片），普通的文本替换随之短路。
扩展按注册顺序探测，第一个命中的扩展生效。
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Pattern, Tuple

from loguru import logger

from ..document.nodes import Document, Drawing, Run, Text, insert_after
from .errors import ValueFormatError


class ContentInliner(ABC):
    """富内容扩展基类。"""

    tag_pattern: Pattern

    def match(self, format_string: str) -> Optional[re.Match]:
        return self.tag_pattern.search(format_string)

    @abstractmethod
    def inline(
        self,
        document: Optional[Document],
        fragment: Text,
        run: Optional[Run],
        value: Any,
        match: re.Match,
        alias: str,
    ) -> None:
        """
        把 value 内联到文档中。

        Args:
            document: 正在填充的文档。
            fragment: 包含别名的文本片段（已完成合并）。
            run: fragment 所在的 Run。
            value: 解析出的参数值。
            match: 格式串与 tag_pattern 的匹配结果。
            alias: 片段中的别名原文，例如 `${Main.logo}`。
        """


class ContentInlinerRegistry:
    """按注册顺序保存扩展；渲染期间只读。"""

    def __init__(self, inliners: Optional[Iterable[ContentInliner]] = None):
        self._inliners: List[ContentInliner] = list(inliners or [])

    def register(self, inliner: ContentInliner) -> ContentInliner:
        self._inliners.append(inliner)
        return inliner

    def find(self, format_string: str) -> Optional[Tuple[ContentInliner, re.Match]]:
        for inliner in self._inliners:
            match = inliner.match(format_string)
            if match is not None:
                return inliner, match
        return None

    def __iter__(self) -> Iterator[ContentInliner]:
        return iter(self._inliners)

    def __len__(self) -> int:
        return len(self._inliners)


class ImageContentInliner(ContentInliner):
    """
    图片扩展：格式串 `${image:宽x高}` 或 `${bitmap:宽x高}`。

    参数值可以是图片二进制内容，也可以是图片路径；别名文本会从片段中删除，
    图片作为 Drawing 紧跟在片段之后插入同一个 Run。
    """

    tag_pattern = re.compile(r"\$\{(?:image|bitmap):([0-9]+)x([0-9]+)\}")

    def inline(self, document, fragment, run, value, match, alias) -> None:
        if not isinstance(value, (bytes, bytearray, str, Path)):
            raise ValueFormatError(
                f"图片字段 {alias} 的值类型不受支持: {type(value).__name__}"
            )
        if run is None:
            raise ValueFormatError(f"图片字段 {alias} 找不到所在的Run")

        width, height = int(match.group(1)), int(match.group(2))
        fragment.value = fragment.value.replace(alias, "", 1)
        data = bytes(value) if isinstance(value, bytearray) else value
        drawing = Drawing(data=data, width=width, height=height, description=alias)
        insert_after(run, fragment, drawing)
        logger.debug(f"已内联图片 {alias} ({width}x{height})")


def default_inliners() -> ContentInlinerRegistry:
    return ContentInlinerRegistry([ImageContentInliner()])


__all__ = [
    "ContentInliner",
    "ContentInlinerRegistry",
    "ImageContentInliner",
    "default_inliners",
]
