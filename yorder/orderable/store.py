"""
持久化适配

排序引擎对数据库只需要少量能力：执行过滤后的查询、取聚合值或排序值列表、
按主键更新单行排序值、在一个事务内批量更新。SQLAlchemyOrderStore
把这些能力封装在一个 Session 之上。
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Tuple

from sqlalchemy import Select, inspect, update
from sqlalchemy.orm import Session

from yorder.log import get_logger

from .schema import OrderableSchema

logger = get_logger()


def association_loaded(instance: Any, association: str) -> bool:
    """关联属性是否已加载（加载结果为 None 也算已加载）"""
    return association not in inspect(instance).unloaded


class SQLAlchemyOrderStore:
    """基于 SQLAlchemy Session 的排序存储

    使用示例:
        store = SQLAlchemyOrderStore(session)
        values = store.scalars(stmt)
        store.update_order(schema, {"id": 1}, 1500.0)
    """

    def __init__(self, session: Session):
        self.session = session

    # ==================== 读取 ====================

    def scalar(self, stmt: Select) -> Any:
        """执行聚合查询，返回单个值"""
        return self.session.execute(stmt).scalar()

    def scalars(self, stmt: Select) -> List[Any]:
        """返回第一列组成的列表"""
        return list(self.session.execute(stmt).scalars())

    def first(self, stmt: Select) -> Optional[Any]:
        """返回第一行的第一个实体或值，没有时返回 None"""
        return self.session.execute(stmt).scalars().first()

    def rows(self, stmt: Select) -> List[Tuple[Any, ...]]:
        """返回全部行（元组形式），用于主键投影"""
        return [tuple(row) for row in self.session.execute(stmt)]

    # ==================== 写入 ====================

    def update_order(self, schema: OrderableSchema, identity: Dict[str, Any], value: float) -> int:
        """按主键更新单行的排序值

        会话中已加载的同一对象会同步为新值。

        Returns:
            受影响的行数
        """
        stmt = (
            update(schema.model)
            .where(*[getattr(schema.model, f) == identity[f] for f in schema.primary_key])
            .values({schema.order_field: value})
        )
        result = self.session.execute(stmt)
        return result.rowcount

    def in_transaction(self) -> bool:
        return self.session.in_transaction()

    @contextmanager
    def atomic(self, nested: Optional[bool] = None) -> Generator[Session, None, None]:
        """原子执行块

        Args:
            nested: True 使用 savepoint，False 在块结束时提交会话事务；
                None 按会话当前是否已在事务中决定

        调用方先读取再写入时，读取本身会自动开启事务，因此需要在读取之前
        用 in_transaction() 判断并显式传入 nested。
        块内抛出异常时先回滚再向上抛出。
        """
        if nested is None:
            nested = self.session.in_transaction()

        if nested:
            with self.session.begin_nested():
                logger.debug("atomic: savepoint")
                yield self.session
            return

        logger.debug("atomic: transaction")
        try:
            yield self.session
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
