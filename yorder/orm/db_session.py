"""
数据库会话管理模块

提供数据库引擎创建、会话管理等功能。Orderable 未显式指定 session 时，
通过 db_manager.get_session() 获取当前线程的 scoped session。

公开 API:
- db_manager: 数据库管理器单例
- init_database(): 初始化数据库连接
- get_engine(): 获取数据库引擎
- db_session_scope(): 上下文管理器，自动提交/回滚/清理
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from yorder.log import orm_logger

_logger = orm_logger

__all__ = [
    'db_manager',
    'init_database',
    'get_engine',
    'db_session_scope',
]


class DatabaseManager:
    """数据库管理器（单例）

    使用示例:
        from yorder.orm import db_manager

        db_manager.init(database_url="sqlite:///./app.db")
        session = db_manager.get_session()
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._engine = None
        self._session_scope = None
        self._initialized = True

    # ==================== 属性访问 ====================

    @property
    def engine(self):
        """获取数据库引擎（只读）

        Raises:
            RuntimeError: 数据库未初始化时
        """
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    @property
    def session_scope(self) -> scoped_session:
        """获取 scoped session（只读）"""
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_scope

    @property
    def is_initialized(self) -> bool:
        """检查数据库是否已初始化"""
        return self._engine is not None and self._session_scope is not None

    # ==================== 核心方法 ====================

    def init(
        self,
        database_url: str = None,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        logger: logging.Logger = None,
        scopefunc: Callable = None,
        config: Any = None,
    ):
        """初始化数据库连接

        重复调用会释放旧引擎并重新创建。

        Args:
            database_url: 数据库连接URL（如果提供 config 则忽略）
            echo: 是否输出SQL语句
            pool_size: 连接池大小
            max_overflow: 最大溢出连接数
            pool_timeout: 连接超时时间
            pool_recycle: 连接回收时间
            pool_pre_ping: 连接前是否ping
            logger: 日志记录器
            scopefunc: session作用域函数，默认按线程隔离
            config: 数据库配置对象（DatabaseSettings）

        Returns:
            tuple: (engine, session_scope)

        使用示例:
            engine, session = init_database("sqlite:///./app.db")
            engine, session = init_database(config=settings.database)
        """
        if config is not None:
            database_url = getattr(config, "url", database_url)
            echo = getattr(config, "echo", echo)
            pool_size = getattr(config, "pool_size", pool_size)
            max_overflow = getattr(config, "max_overflow", max_overflow)
            pool_timeout = getattr(config, "pool_timeout", pool_timeout)
            pool_recycle = getattr(config, "pool_recycle", pool_recycle)
            pool_pre_ping = getattr(config, "pool_pre_ping", pool_pre_ping)

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        if logger is None:
            logger = _logger

        if self.is_initialized:
            self.dispose()

        logger.info(f"数据库配置URL: {database_url}")

        try:
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # 内存数据库：单连接
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                logger.info("SQLite内存数据库引擎创建成功（StaticPool）")
            elif database_url.startswith("sqlite"):
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False, "timeout": pool_timeout},
                )
                logger.info("SQLite文件数据库引擎创建成功")
            else:
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    pool_pre_ping=pool_pre_ping,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_timeout=pool_timeout,
                    pool_recycle=pool_recycle,
                )
                logger.info("数据库引擎创建成功")
        except Exception as e:
            logger.error(f"创建数据库引擎失败: {str(e)}")
            raise

        session_maker = sessionmaker(autocommit=False, autoflush=True, bind=self._engine)
        self._session_scope = scoped_session(session_maker, scopefunc=scopefunc)

        logger.info("数据库session创建成功")
        return self._engine, self._session_scope

    def get_session(self) -> Session:
        """获取当前作用域的 session

        Raises:
            RuntimeError: 数据库未初始化时
        """
        return self.session_scope()

    def cleanup(self):
        """移除当前作用域的 session，归还连接（幂等）"""
        if self._session_scope is not None and self._session_scope.registry.has():
            self._session_scope.remove()
            _logger.debug("session_scope 移除完成")

    def dispose(self):
        """释放引擎和 session 注册表"""
        self.cleanup()
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_scope = None


# ==================== 全局单例 ====================

db_manager = DatabaseManager()


# ==================== 公开 API 函数 ====================

def init_database(
    database_url: str = None,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
    pool_pre_ping: bool = True,
    logger: logging.Logger = None,
    scopefunc: Callable = None,
    config: Any = None,
):
    """初始化数据库连接

    db_manager.init() 的便捷包装函数，参数说明见 DatabaseManager.init()。
    """
    return db_manager.init(
        database_url=database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        logger=logger,
        scopefunc=scopefunc,
        config=config,
    )


def get_engine():
    """获取数据库引擎"""
    return db_manager.engine


@contextmanager
def db_session_scope(auto_commit: bool = True) -> Generator[Session, None, None]:
    """session 上下文管理器

    自动提交或回滚，并在退出时清理 session。

    使用示例:
        with db_session_scope() as session:
            session.add(Todo(title="Buy milk", user_id=1, position=Todo.next_order(user_id=1)))
    """
    session = db_manager.get_session()
    try:
        yield session
        if auto_commit:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        db_manager.cleanup()
