"""
Template Engine配置。

所有配置项都可以通过 `TEMPLATE_ENGINE_` 前缀的环境变量或 `.env` 文件覆盖，
渲染过程只读取这些配置，不会在运行期修改。
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """模板填充引擎的全局配置。"""

    model_config = SettingsConfigDict(
        env_prefix="TEMPLATE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 未声明字段格式时的默认日期/时间格式（strftime语法）
    DEFAULT_DATE_FORMAT: str = "%d.%m.%Y"
    DEFAULT_DATETIME_FORMAT: str = "%d.%m.%Y %H:%M"
    DEFAULT_TIME_FORMAT: str = "%H:%M"

    # 输出与日志
    OUTPUT_DIR: str = "template_engine_output"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    TEMPLATE_ENCODING: str = "utf-8"


settings = Settings()
