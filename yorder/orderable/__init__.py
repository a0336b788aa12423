"""排序模块

为 SQLAlchemy 模型提供基于分数索引（浮点排序值）的排序能力。

导出:
    - Orderable: 排序操作门面
    - OrderFieldMixin: 排序字段 Mixin（提供 position 字段）
    - OrderableMixin: 排序操作 Mixin
    - OrderableSchema / ScopeJoin: 排序配置描述
    - ScopeValue / resolve: scope 解析
    - Predicate / build_predicate / apply_predicate: 分区谓词
    - rebalance: 重新均分排序值
    - SQLAlchemyOrderStore: 持久化适配

使用示例:
    from yorder.orderable import Orderable

    item_order = Orderable(Item, scope=["set_id"])
    item.position = item_order.next_order(set_id=1)
"""

from .schema import OrderableSchema, ScopeJoin
from .scope import (
    ScopeValue,
    ScopeMap,
    ItemScope,
    ParentScope,
    GlobalScope,
    scope_input,
    resolve,
)
from .predicate import (
    Join,
    Constraint,
    Predicate,
    build_predicate,
    apply_predicate,
    partition_select,
)
from .store import SQLAlchemyOrderStore
from .rebalance import rebalance
from .order import Orderable, Direction, Position
from .mixin import OrderFieldMixin, OrderableMixin

__all__ = [
    "Orderable",
    "Direction",
    "Position",
    "OrderFieldMixin",
    "OrderableMixin",
    "OrderableSchema",
    "ScopeJoin",
    "ScopeValue",
    "ScopeMap",
    "ItemScope",
    "ParentScope",
    "GlobalScope",
    "scope_input",
    "resolve",
    "Join",
    "Constraint",
    "Predicate",
    "build_predicate",
    "apply_predicate",
    "partition_select",
    "SQLAlchemyOrderStore",
    "rebalance",
]
