"""
yorder - SQLAlchemy 模型排序引擎

使用浮点排序值（分数索引）为记录维护可分区的稳定顺序，
移动条目时只更新一行。
"""

from .version import __version__, __description__

# 导出排序模块
from .orderable import (
    Orderable,
    OrderFieldMixin,
    OrderableMixin,
    OrderableSchema,
    ScopeValue,
)

# 导出异常
from .exceptions import (
    ErrorCode,
    OrderableError,
    OrderableConfigError,
    MissingScopeField,
    AmbiguousScopeMapping,
    AssociationNotLoaded,
    InvalidMoveArguments,
    UnknownInputShape,
    NeighborNotFound,
)

# 导出配置
from .config import (
    AppSettings,
    OrderableSettings,
    load_yaml_config,
)

# 导出ORM会话管理
from .orm import (
    db_manager,
    init_database,
    db_session_scope,
)

# 导出日志
from .log import get_logger, setup_root_logger

__all__ = [
    "__version__",
    "__description__",
    "Orderable",
    "OrderFieldMixin",
    "OrderableMixin",
    "OrderableSchema",
    "ScopeValue",
    "ErrorCode",
    "OrderableError",
    "OrderableConfigError",
    "MissingScopeField",
    "AmbiguousScopeMapping",
    "AssociationNotLoaded",
    "InvalidMoveArguments",
    "UnknownInputShape",
    "NeighborNotFound",
    "AppSettings",
    "OrderableSettings",
    "load_yaml_config",
    "db_manager",
    "init_database",
    "db_session_scope",
    "get_logger",
    "setup_root_logger",
]
