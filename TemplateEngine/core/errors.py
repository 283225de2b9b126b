"""
模板填充过程中的异常定义。

所有异常都继承自 TemplateError，携带可读信息、原始异常以及模板名称，
便于在日志中快速定位是哪一份模板、哪一个别名出了问题。
"""

from __future__ import annotations

from typing import Optional


class TemplateError(RuntimeError):
    """模板渲染失败的基类异常。"""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        template_name: Optional[str] = None,
    ):
        """
        构造异常。

        Args:
            message: 人类可读的错误描述。
            cause: 触发该异常的原始异常（可选）。
            template_name: 出错模板的名称，未知时可稍后由渲染器补齐。
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.template_name = template_name
        if cause is not None:
            self.__cause__ = cause

    def with_template(self, template_name: Optional[str]) -> "TemplateError":
        """补齐模板名称（已存在时保持不变），返回自身以便直接raise。"""
        if self.template_name is None and template_name:
            self.template_name = template_name
        return self

    def __str__(self) -> str:
        if self.template_name:
            return f"{self.message} [模板: {self.template_name}]"
        return self.message


class TemplateLoadError(TemplateError):
    """模板文档无法读取或结构不合法。"""


class AliasSyntaxError(TemplateError):
    """别名命中了通用模式，但无法严格解析为 路径+参数名。"""


class BandNotFoundError(TemplateError):
    """别名路径中的某一级band不存在。"""


class ParameterMissingError(TemplateError):
    """band存在，但没有该参数（值为None不属于此类情况）。"""


class ValueFormatError(TemplateError):
    """字段格式无法应用到参数值上。"""


class SerializationError(TemplateError):
    """填充后的文档无法序列化。"""


__all__ = [
    "TemplateError",
    "TemplateLoadError",
    "AliasSyntaxError",
    "BandNotFoundError",
    "ParameterMissingError",
    "ValueFormatError",
    "SerializationError",
]
