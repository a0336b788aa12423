"""
重新均分排序值

把一个集合内所有条目的排序值重置为 increment * 1 ... increment * n，
相对顺序按 order_by 决定（默认当前排序字段升序，主键作为并列时的次序）。
会话已在事务中时更新在一个 savepoint 中完成，否则在结束时提交会话事务；
失败时整体回滚。
"""

from typing import Any, Union

from sqlalchemy import select

from yorder.log import orderable_logger as logger

from .arithmetic import rebalanced_orders
from .predicate import partition_select
from .schema import OrderableSchema
from .scope import ScopeValue
from .store import SQLAlchemyOrderStore


def _sort_column(schema: OrderableSchema, order_by: Union[str, Any, None]):
    if order_by is None:
        return schema.order_column
    if isinstance(order_by, str):
        return getattr(schema.model, order_by)
    return order_by


def rebalance(
    store: SQLAlchemyOrderStore,
    schema: OrderableSchema,
    scope_value: ScopeValue,
    order_by: Union[str, Any, None] = None,
    desc: bool = False,
) -> int:
    """重新均分一个集合的排序值

    Args:
        store: 存储适配器
        schema: 排序配置
        scope_value: 已解析的分区
        order_by: 排序依据，字段名或列表达式，默认为排序字段
        desc: 是否降序

    Returns:
        被更新的条目数，空集合返回 0 且不进入 atomic()

    使用示例:
        # 按创建时间初始化排序值
        rebalance(store, schema, scope_value, order_by="created_at")
    """
    sort_column = _sort_column(schema, order_by)
    sort_column = sort_column.desc() if desc else sort_column.asc()

    stmt = select(*schema.pk_columns).select_from(schema.model)
    stmt = partition_select(stmt, schema, scope_value)
    stmt = stmt.order_by(sort_column, *schema.pk_columns)

    # 读取会自动开启事务，需在读取前判断
    nested = store.in_transaction()
    rows = store.rows(stmt)
    if not rows:
        logger.debug(f"rebalance 跳过空集合: {scope_value.as_dict()}")
        return 0

    values = rebalanced_orders(len(rows), schema.increment)
    with store.atomic(nested=nested):
        for row, value in zip(rows, values):
            store.update_order(schema, dict(zip(schema.primary_key, row)), value)

    logger.info(
        f"rebalance 完成: model={schema.model.__name__}, "
        f"scope={scope_value.as_dict()}, count={len(rows)}"
    )
    return len(rows)
