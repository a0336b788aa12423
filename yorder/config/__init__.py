"""配置模块

提供配置管理功能：
- OrderableSettings: 排序引擎默认值
- DatabaseSettings / LoggingSettings: 数据库与日志配置
- AppSettings: 聚合配置，支持 YAML + 环境变量
- ConfigLoader: YAML 配置加载器

快速开始:
    from yorder.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)
"""

from .settings import (
    AppSettings,
    OrderableSettings,
    DatabaseSettings,
    LoggingSettings,
    parse_size,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "OrderableSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "parse_size",
    "ConfigLoader",
    "load_yaml_config",
]
