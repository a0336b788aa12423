"""排序 Mixin

为声明式模型提供排序字段和排序方法，方法全部委托给按类缓存的 Orderable。
session 使用 db_manager.get_session()。

使用示例:
    from yorder.orderable import OrderFieldMixin, OrderableMixin

    class Todo(Base, OrderFieldMixin, OrderableMixin):
        __tablename__ = "todos"
        __order_scope__ = "user_id"

        id: Mapped[int] = mapped_column(primary_key=True)
        user_id: Mapped[int]

    todo = Todo(user_id=1)
    todo.init_order()          # 放到最后
    session.add(todo)
    session.flush()

    todo.move_up()
    Todo.rebalance(user_id=1)
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import Float
from sqlalchemy.orm import Mapped, mapped_column

from .order import Orderable


class OrderFieldMixin:
    """排序字段 Mixin

    提供 position 浮点字段，值越小越靠前。
    """

    position: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
        index=True,
        comment="排序值",
    )


class OrderableMixin:
    """排序操作 Mixin

    可配置属性（子类可覆盖）:
        - __order_field__: 排序字段名，默认 "position"
        - __order_scope__: 分区字段，None 表示全局排序
            - 字符串: 单字段，如 "set_id"
            - 列表: 多字段，如 ["project_id", "status"]
        - __order_scope_join__: 跨表 scope 字段 {字段: (关联模型, 外键字段)}
        - __order_increment__: 相邻条目默认间距
        - __order_threshold__: needs_rebalance 默认阈值
    """

    # ==================== 配置 ====================

    __order_field__: str = "position"

    __order_scope__: Union[str, List[str], None] = None

    __order_scope_join__: Optional[Dict[str, Tuple[type, str]]] = None

    __order_increment__: float = 1000.0

    __order_threshold__: float = 0.001

    @classmethod
    def orderable(cls) -> Orderable:
        """当前类的 Orderable（首次访问时构建）"""
        order = cls.__dict__.get("_orderable")
        if order is None:
            scope = cls.__order_scope__ or []
            if isinstance(scope, str):
                scope = [scope]
            order = Orderable(
                cls,
                scope=scope,
                scope_join=cls.__order_scope_join__,
                order_field=cls.__order_field__,
                increment=cls.__order_increment__,
                rebalance_threshold=cls.__order_threshold__,
            )
            cls._orderable = order
        return order

    # ==================== 实例方法 ====================

    def move_up(self):
        """上移一位，已在最前时不变"""
        return self.orderable().move(self, direction="up")

    def move_down(self):
        """下移一位，已在最后时不变"""
        return self.orderable().move(self, direction="down")

    def move_between(self, before_id: Any = None, after_id: Any = None):
        """移动到两个条目之间

        Example:
            item.move_between(item_1.id, item_2.id)
            item.move_between(after_id=first.id)   # 放到 first 之前
        """
        return self.orderable().move(self, between=(before_id, after_id))

    def move_after(self, other):
        """紧跟在 other 之后"""
        return self.orderable().insert(self, other, position="after")

    def move_before(self, other):
        """紧挨在 other 之前"""
        return self.orderable().insert(self, other, position="before")

    def sibling_before(self):
        return self.orderable().sibling_before(self)

    def sibling_after(self):
        return self.orderable().sibling_after(self)

    def init_order(self, position: str = "last") -> float:
        """为新条目设置初始排序值

        Args:
            position: "last" 放到最后（默认），"first" 放到最前

        Returns:
            设置的排序值
        """
        order = self.orderable()
        if position == "first" and order.count(self):
            value = order.first_order(self) - order.schema.increment
        else:
            value = order.next_order(self)
        setattr(self, order.schema.order_field, value)
        return value

    # ==================== 类方法 ====================

    @classmethod
    def first_order(cls, scope: Any = None, **scope_kwargs) -> float:
        return cls.orderable().first_order(scope, **scope_kwargs)

    @classmethod
    def last_order(cls, scope: Any = None, **scope_kwargs) -> float:
        return cls.orderable().last_order(scope, **scope_kwargs)

    @classmethod
    def next_order(cls, scope: Any = None, **scope_kwargs) -> float:
        return cls.orderable().next_order(scope, **scope_kwargs)

    @classmethod
    def order_count(cls, scope: Any = None, **scope_kwargs) -> int:
        return cls.orderable().count(scope, **scope_kwargs)

    @classmethod
    def ordered(cls, scope: Any = None, **scope_kwargs):
        """集合内条目的查询（未执行），按排序字段升序

        Example:
            todos = session.scalars(Todo.ordered(user_id=1)).all()
        """
        return cls.orderable().siblings(scope, **scope_kwargs)

    @classmethod
    def needs_rebalance(cls, scope: Any = None, threshold: Optional[float] = None, **scope_kwargs) -> bool:
        return cls.orderable().needs_rebalance(scope, threshold=threshold, **scope_kwargs)

    @classmethod
    def rebalance(cls, scope: Any = None, order_by: Any = None, desc: bool = False, **scope_kwargs) -> int:
        """重新均分排序值

        Example:
            Todo.rebalance(user_id=1)
            Todo.rebalance(user_id=1, order_by="created_at")  # 按创建时间初始化
        """
        return cls.orderable().rebalance(scope, order_by=order_by, desc=desc, **scope_kwargs)
