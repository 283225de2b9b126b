"""
Template Engine工具模块。

当前主要暴露配置读取逻辑。
"""

from .config import Settings, settings

__all__ = ["Settings", "settings"]
