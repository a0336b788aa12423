"""ORM模块

提供数据库会话管理，Orderable 默认从这里获取 session。

使用示例:
    from yorder.orm import init_database, db_session_scope

    init_database("sqlite:///./app.db")

    with db_session_scope() as session:
        ...
"""

from .db_session import (
    DatabaseManager,
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
)

__all__ = [
    "DatabaseManager",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
]
