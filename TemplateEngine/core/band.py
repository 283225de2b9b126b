"""
报表数据树（band）与路径解析。

BandData 是一棵有名字的树：每个节点有自己的参数表，子节点按名字分组，
同名子band可以有多个实例（重复的子报表）。字段格式表挂在根节点上，
键为 `band名.参数名` 的完整名称。
"""

from __future__ import annotations

import json
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from .errors import BandNotFoundError, ParameterMissingError, TemplateLoadError


@dataclass(frozen=True)
class ReportFieldFormat:
    """字段格式：name 为完整参数名，format 为格式串或富内容标记。"""

    name: str
    format: str


class BandData:
    """
    报表数据树中的一个band。

    parent 以弱引用保存，避免子band反向持有整棵树。
    """

    def __init__(
        self,
        name: str,
        parent: Optional["BandData"] = None,
        data: Optional[Dict[str, Any]] = None,
        field_formats: Optional[Dict[str, ReportFieldFormat]] = None,
    ):
        self.name = name
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self.data: Dict[str, Any] = dict(data or {})
        self.child_bands: Dict[str, List[BandData]] = {}
        self.report_field_formats: Dict[str, ReportFieldFormat] = dict(field_formats or {})

    def __repr__(self) -> str:
        return f"BandData(name={self.name!r}, params={list(self.data)!r})"

    # ===== 树结构 =====

    @property
    def parent(self) -> Optional["BandData"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: Optional["BandData"]) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    @property
    def root(self) -> "BandData":
        band = self
        while band.parent is not None:
            band = band.parent
        return band

    @property
    def full_name(self) -> str:
        """从根到当前band的点号路径（不含根）。"""
        names: List[str] = []
        band: Optional[BandData] = self
        while band is not None and band.parent is not None:
            names.append(band.name)
            band = band.parent
        return ".".join(reversed(names))

    def add_child(self, band: "BandData") -> "BandData":
        band.parent = self
        self.child_bands.setdefault(band.name, []).append(band)
        return band

    def add_children(self, bands: Iterable["BandData"]) -> None:
        for band in bands:
            self.add_child(band)

    def get_children_by_name(self, name: str) -> List["BandData"]:
        return list(self.child_bands.get(name, []))

    def get_child_by_name(self, name: str) -> Optional["BandData"]:
        """同名子band有多个实例时取第一个。"""
        children = self.child_bands.get(name)
        return children[0] if children else None

    def find_band_recursively(self, name: str) -> Optional["BandData"]:
        if self.name == name:
            return self
        for children in self.child_bands.values():
            for child in children:
                found = child.find_band_recursively(name)
                if found is not None:
                    return found
        return None

    def find_bands_recursively(self, name: str) -> List["BandData"]:
        """
        先序收集子树中所有名为 name 的band（包括自身）。

        用于表格行展开：声明band可能嵌套在任意深度，实例顺序即文档顺序。
        """
        result: List[BandData] = []
        if self.name == name:
            result.append(self)
        for children in self.child_bands.values():
            for child in children:
                result.extend(child.find_bands_recursively(name))
        return result

    # ===== 参数 =====

    def has_parameter(self, name: str) -> bool:
        return name in self.data

    def get_parameter_value(self, name: str) -> Any:
        """
        读取参数值。

        参数存在但值为None是合法的（渲染为空串）；参数不存在则抛出
        ParameterMissingError。
        """
        if name not in self.data:
            raise ParameterMissingError(f"band [{self.name}] 中没有参数 [{name}]")
        return self.data[name]

    def get_report_field_formats(self) -> Dict[str, ReportFieldFormat]:
        return self.root.report_field_formats

    # ===== 构建 =====

    @classmethod
    def from_dict(
        cls, payload: Dict[str, Any], name: Optional[str] = None,
        parent: Optional["BandData"] = None,
    ) -> "BandData":
        """
        从字典构建band树。

        结构示例::

            {
              "name": "Root",
              "parameters": {"title": "订单"},
              "children": {"Items": [{"parameters": {"qty": 1}}, ...]},
              "fieldFormats": {"Items.price": ",.2f"}
            }
        """
        if not isinstance(payload, dict):
            raise TemplateLoadError(f"band数据必须是对象，实际为 {type(payload).__name__}")
        band_name = name or payload.get("name") or "Root"
        formats = {
            key: ReportFieldFormat(key, value)
            for key, value in (payload.get("fieldFormats") or {}).items()
        }
        band = cls(band_name, parent=parent, data=payload.get("parameters") or {},
                   field_formats=formats)
        for child_name, instances in (payload.get("children") or {}).items():
            if isinstance(instances, dict):
                instances = [instances]
            for instance in instances:
                band.add_child(cls.from_dict(instance, name=child_name, parent=band))
        return band


def find_band_by_path(root: BandData, path: str) -> BandData:
    """
    严格逐级下降解析band路径。

    每一级取同名子band的第一个实例；路径等于根名称时返回根本身。
    任何一级不存在或为空集合都抛出 BandNotFoundError，而不是去全树搜索同名节点。
    """
    if path == root.name:
        return root
    current = root
    walked: List[str] = []
    for segment in path.split("."):
        walked.append(segment)
        child = current.get_child_by_name(segment)
        if child is None:
            raise BandNotFoundError(
                f"路径 [{path}] 解析失败：band [{'.'.join(walked)}] 不存在"
            )
        current = child
    return current


def load_band_data(path: Union[str, Path], encoding: str = "utf-8") -> BandData:
    """从JSON文件读取band树。"""
    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding=encoding))
    except (OSError, json.JSONDecodeError) as exc:
        raise TemplateLoadError(f"无法读取报表数据: {file_path}", cause=exc) from exc
    root = BandData.from_dict(payload)
    logger.debug(f"已加载报表数据 {file_path}，根band: {root.name}")
    return root


__all__ = [
    "ReportFieldFormat",
    "BandData",
    "find_band_by_path",
    "load_band_data",
]
