"""
排序门面

Orderable 为一个模型提供完整的排序操作集合：first/last/next_order、count、
siblings、sibling_before/after、move、insert、needs_rebalance、rebalance、
page_of 等。

需要分区的操作都可以接收任意 scope 输入形式（条目实例、字典、父对象、
裸 id、None），既可以作为第一个位置参数，也可以用关键字参数传入。
move / insert / sibling_* 必须传入条目实例，分区由条目自身推断。

Orderable 本身只保存不可变配置，可以在线程之间共享；session 未指定时
每次操作通过 db_manager.get_session() 获取当前线程的 session。

使用示例:
    todo_order = Orderable(Todo, scope=["user_id"])

    todo = Todo(title="Buy milk", user_id=user.id)
    todo.position = todo_order.next_order(user)
    session.add(todo)

    todo_order.move(todo, direction="up")
    todo_order.move(todo, between=(first.id, second.id))

    if todo_order.needs_rebalance(user_id=user.id):
        todo_order.rebalance(user_id=user.id)
"""

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from sqlalchemy import Select, and_, case, func, inspect, not_, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from yorder.config import OrderableSettings
from yorder.exceptions import InvalidMoveArguments, NeighborNotFound
from yorder.log import orderable_logger as logger
from yorder.orm import db_manager

from . import arithmetic
from .predicate import partition_select
from .rebalance import rebalance as rebalance_partition
from .schema import OrderableSchema
from .scope import ItemScope, ScopeValue, resolve
from .store import SQLAlchemyOrderStore


class Direction(str, Enum):
    """move 方向"""
    UP = "up"
    DOWN = "down"


class Position(str, Enum):
    """insert 相对锚点的位置"""
    BEFORE = "before"
    AFTER = "after"


SessionSource = Union[Session, Callable[[], Session], None]


class Orderable:
    """模型排序操作集合

    Args:
        model: 被排序的 SQLAlchemy 模型类
        scope: 分区字段名列表，为空表示全局排序
        scope_join: 跨表 scope 字段 {字段: (关联模型, 本模型外键字段)}
        order_field: 排序字段名
        increment: 相邻条目默认间距
        rebalance_threshold: needs_rebalance 默认阈值
        refine: 读取时追加条件的钩子 refine(stmt, scope_value) -> stmt
        session: Session、返回 Session 的可调用对象（如 scoped_session），
            或 None 表示使用 db_manager.get_session()
        page_size: page_of 默认页大小

    使用示例:
        # 用户任务看板：任务的 status_id 决定所在列
        board_order = Orderable(
            UserTaskPosition,
            scope=["user_id", "status_id"],
            scope_join={"status_id": (Task, "task_id")},
        )
        board_order.next_order(user_id=1, status_id=2)
    """

    def __init__(
        self,
        model: type,
        scope: Sequence[str] = (),
        scope_join: Optional[Mapping[str, tuple]] = None,
        order_field: str = "position",
        increment: float = 1000.0,
        rebalance_threshold: float = 0.001,
        refine: Optional[Callable[[Select, ScopeValue], Select]] = None,
        session: SessionSource = None,
        page_size: int = 20,
    ):
        self.schema = OrderableSchema.build(
            model,
            scope=scope,
            scope_join=scope_join,
            order_field=order_field,
            increment=increment,
            rebalance_threshold=rebalance_threshold,
            refine=refine,
        )
        self.page_size = page_size
        self._session = session

    @classmethod
    def from_settings(cls, model: type, settings=None, **kwargs) -> "Orderable":
        """使用 OrderableSettings 中的默认值构建

        关键字参数优先于 settings。

        使用示例:
            settings = load_yaml_config("config/settings.yaml", AppSettings)
            todo_order = Orderable.from_settings(Todo, settings.orderable, scope=["user_id"])
        """
        if settings is None:
            settings = OrderableSettings()
        kwargs.setdefault("order_field", settings.order_field)
        kwargs.setdefault("increment", settings.increment)
        kwargs.setdefault("rebalance_threshold", settings.rebalance_threshold)
        kwargs.setdefault("page_size", settings.page_size)
        return cls(model, **kwargs)

    def __repr__(self) -> str:
        return (
            f"Orderable({self.schema.model.__name__}, "
            f"scope={list(self.schema.scope)}, order_field={self.schema.order_field!r})"
        )

    # ==================== 内部辅助 ====================

    @property
    def model(self) -> type:
        return self.schema.model

    @property
    def session(self) -> Session:
        """本次操作使用的 session"""
        if self._session is None:
            return db_manager.get_session()
        if isinstance(self._session, Session):
            return self._session
        return self._session()

    def _store(self) -> SQLAlchemyOrderStore:
        return SQLAlchemyOrderStore(self.session)

    def _scope(self, scope: Any, scope_kwargs: Dict[str, Any]) -> ScopeValue:
        if scope_kwargs:
            if scope is not None:
                raise TypeError("scope 不能同时以位置参数和关键字参数传入")
            scope = scope_kwargs
        return resolve(scope, self.schema)

    def _require_item(self, item: Any, operation: str):
        if not isinstance(item, self.model):
            raise InvalidMoveArguments(
                f"{operation} 需要 {self.model.__name__} 实例，实际得到: {type(item).__name__}",
                operation=operation,
            )

    def _item_scope(self, item: Any, operation: str) -> ScopeValue:
        self._require_item(item, operation)
        return ItemScope(item).resolve(self.schema)

    def _select(self, columns: Sequence[Any], scope_value: ScopeValue) -> Select:
        stmt = select(*columns).select_from(self.model)
        return partition_select(stmt, self.schema, scope_value)

    def _identity(self, item: Any) -> Dict[str, Any]:
        return {f: getattr(item, f) for f in self.schema.primary_key}

    def _current(self, item: Any) -> float:
        return getattr(item, self.schema.order_field)

    def _neighbor_values(self, scope_value: ScopeValue, current: float, upward: bool, limit: int) -> list:
        """current 上方（或下方）最近的 limit 个不同排序值"""
        column = self.schema.order_column
        stmt = self._select([column], scope_value).distinct()
        if upward:
            stmt = stmt.where(column < current).order_by(column.desc())
        else:
            stmt = stmt.where(column > current).order_by(column.asc())
        return self._store().scalars(stmt.limit(limit))

    def _write(self, item: Any, value: float) -> Any:
        """按主键写入排序值，并把新值作为已提交状态写回 item"""
        self._store().update_order(self.schema, self._identity(item), value)
        set_committed_value(item, self.schema.order_field, value)
        return item

    # ==================== 读取 ====================

    def first_order(self, scope: Any = None, **scope_kwargs) -> float:
        """集合中最小的排序值，空集合为 0.0"""
        scope_value = self._scope(scope, scope_kwargs)
        stmt = self._select([func.min(self.schema.order_column)], scope_value)
        return arithmetic.first_order(self._store().scalar(stmt))

    def last_order(self, scope: Any = None, **scope_kwargs) -> float:
        """集合中最大的排序值，空集合为 0.0"""
        scope_value = self._scope(scope, scope_kwargs)
        stmt = self._select([func.max(self.schema.order_column)], scope_value)
        return arithmetic.last_order(self._store().scalar(stmt))

    def next_order(self, scope: Any = None, **scope_kwargs) -> float:
        """新条目追加到末尾时应使用的排序值"""
        scope_value = self._scope(scope, scope_kwargs)
        stmt = self._select([func.max(self.schema.order_column)], scope_value)
        return arithmetic.next_order(self._store().scalar(stmt), self.schema.increment)

    def count(self, scope: Any = None, **scope_kwargs) -> int:
        scope_value = self._scope(scope, scope_kwargs)
        stmt = self._select([func.count()], scope_value)
        return self._store().scalar(stmt) or 0

    def siblings(self, scope: Any = None, **scope_kwargs) -> Select:
        """集合内全部条目的查询（未执行），按排序字段升序

        使用示例:
            stmt = todo_order.siblings(user).limit(10)
            todos = session.scalars(stmt).all()
        """
        scope_value = self._scope(scope, scope_kwargs)
        stmt = select(self.model)
        stmt = partition_select(stmt, self.schema, scope_value)
        return stmt.order_by(self.schema.order_column)

    def sibling_before(self, item: Any) -> Optional[Any]:
        """排序值严格小于 item 的最近条目，没有时返回 None"""
        scope_value = self._item_scope(item, "sibling_before")
        column = self.schema.order_column
        stmt = (
            self.siblings(scope_value)
            .where(column < self._current(item))
            .order_by(None)
            .order_by(column.desc())
            .limit(1)
        )
        return self._store().first(stmt)

    def sibling_after(self, item: Any) -> Optional[Any]:
        """排序值严格大于 item 的最近条目，没有时返回 None"""
        scope_value = self._item_scope(item, "sibling_after")
        column = self.schema.order_column
        stmt = self.siblings(scope_value).where(column > self._current(item)).limit(1)
        return self._store().first(stmt)

    def is_first(self, item: Any) -> bool:
        scope_value = self._item_scope(item, "is_first")
        return self._current(item) <= self.first_order(scope_value)

    def is_last(self, item: Any) -> bool:
        scope_value = self._item_scope(item, "is_last")
        return self._current(item) >= self.last_order(scope_value)

    def first_flag(self, scope: Any = None, **scope_kwargs):
        """SQL 表达式: 条目是否为集合中的第一个

        使用示例:
            stmt = select(Item, item_order.first_flag(set_id=1).label("is_first"))
        """
        return self._edge_flag(func.min, self._scope(scope, scope_kwargs))

    def last_flag(self, scope: Any = None, **scope_kwargs):
        """SQL 表达式: 条目是否为集合中的最后一个"""
        return self._edge_flag(func.max, self._scope(scope, scope_kwargs))

    def _edge_flag(self, aggregate, scope_value: ScopeValue):
        column = self.schema.order_column
        edge = self._select([aggregate(column)], scope_value).correlate(None).scalar_subquery()
        return case((column == edge, True), else_=False)

    def page_of(self, item: Any, page_size: Optional[int] = None) -> int:
        """按排序分页时 item 所在的页码（从 1 开始）"""
        page_size = page_size or self.page_size
        if page_size <= 0:
            raise ValueError(f"page_size 必须大于 0，当前为 {page_size}")
        scope_value = self._item_scope(item, "page_of")
        column = self.schema.order_column
        stmt = self._select([func.count()], scope_value).where(column < self._current(item))
        preceding = self._store().scalar(stmt) or 0
        return preceding // page_size + 1

    # ==================== 移动 ====================

    def move(self, item: Any, direction: Union[str, Direction, None] = None, between: Optional[Sequence[Any]] = None) -> Any:
        """移动条目

        Args:
            item: 被移动的条目实例
            direction: "up" 或 "down"
            between: (before_id, after_id)，任一可为 None；复合主键时可传主键字典，
                或在只剩一个非 scope 主键字段时直接传该字段的值

        Returns:
            同一个 item；发生写入时其排序值已更新（已提交状态，不会标记为脏），
            已在最前/最后或 between 两端都为 None 时原样返回

        Raises:
            InvalidMoveArguments: 参数组合无效
            NeighborNotFound: between 指定的条目不在同一集合中

        使用示例:
            item_order.move(item, direction="down")
            item_order.move(item, between=(item_1.id, item_2.id))
            task_user_order.move(task_user, between=(None, task_3.id))
        """
        if direction is not None and between is not None:
            raise InvalidMoveArguments("direction 与 between 只能指定一个")
        if direction is None and between is None:
            raise InvalidMoveArguments()

        scope_value = self._item_scope(item, "move")
        current = self._current(item)
        increment = self.schema.increment

        if direction is not None:
            try:
                direction = Direction(direction)
            except ValueError:
                raise InvalidMoveArguments(
                    f"未知的移动方向: {direction!r}，可选值: up / down",
                    direction=str(direction),
                ) from None
            upward = direction is Direction.UP
            neighbors = self._neighbor_values(scope_value, current, upward=upward, limit=2)
            if upward:
                new_value = arithmetic.move_up_order(current, neighbors, increment)
            else:
                new_value = arithmetic.move_down_order(current, neighbors, increment)
        else:
            before_id, after_id = self._unpack_between(between)
            before = self._neighbor_value(scope_value, before_id)
            after = self._neighbor_value(scope_value, after_id)
            new_value = arithmetic.between_order(current, before, after, increment)

        if new_value == current:
            logger.debug(f"move 未改变位置: {self.model.__name__} {self._identity(item)}")
            return item

        logger.debug(
            f"move {self.model.__name__} {self._identity(item)}: {current} -> {new_value}"
        )
        return self._write(item, new_value)

    def _unpack_between(self, between: Any) -> tuple:
        if isinstance(between, (str, bytes, Mapping)) or not isinstance(between, Sequence) or len(between) != 2:
            raise InvalidMoveArguments(
                f"between 必须是 (before_id, after_id) 二元组，实际得到: {between!r}",
            )
        return between[0], between[1]

    def _neighbor_value(self, scope_value: ScopeValue, neighbor_id: Any) -> Optional[float]:
        """查找相邻条目的排序值，仅在同一集合内查找"""
        if neighbor_id is None:
            return None
        identity = arithmetic.neighbor_identity(
            neighbor_id,
            self.schema.primary_key,
            self.schema.scope,
            scope_value.as_dict(),
        )
        stmt = self._select([self.schema.order_column], scope_value).where(
            *[getattr(self.model, f) == v for f, v in identity.items()]
        )
        rows = self._store().rows(stmt.limit(1))
        if not rows:
            raise NeighborNotFound(identity)
        return rows[0][0]

    def insert(self, item: Any, anchor: Any, position: Union[str, Position] = Position.AFTER) -> Any:
        """把 item 放到 anchor 紧邻的前面或后面

        item 需要与 anchor 属于同一集合。已持久化的 item 直接按主键更新；
        尚未持久化的 item 只设置排序属性，随调用方的 flush 一起写入。

        使用示例:
            item_order.insert(new_item, anchor=item_2)                     # item_2 之后
            item_order.insert(new_item, anchor=item_2, position="before")  # item_2 之前
        """
        try:
            position = Position(position)
        except ValueError:
            raise InvalidMoveArguments(
                f"未知的插入位置: {position!r}，可选值: before / after",
                position=str(position),
            ) from None

        self._require_item(item, "insert")
        scope_value = self._item_scope(anchor, "insert")
        anchor_value = self._current(anchor)
        column = self.schema.order_column
        increment = self.schema.increment

        stmt = self._select([column], scope_value).where(
            not_(and_(*[getattr(self.model, f) == v for f, v in self._identity(item).items()]))
        )
        if position is Position.AFTER:
            stmt = stmt.where(column > anchor_value).order_by(column.asc())
            neighbor = self._store().first(stmt.limit(1))
            new_value = arithmetic.insert_after_order(anchor_value, neighbor, increment)
        else:
            stmt = stmt.where(column < anchor_value).order_by(column.desc())
            neighbor = self._store().first(stmt.limit(1))
            new_value = arithmetic.insert_before_order(anchor_value, neighbor, increment)

        logger.debug(
            f"insert {self.model.__name__} {position.value} {self._identity(anchor)}: {new_value}"
        )
        if inspect(item).has_identity:
            return self._write(item, new_value)
        setattr(item, self.schema.order_field, new_value)
        return item

    # ==================== 重新均分 ====================

    def needs_rebalance(self, scope: Any = None, threshold: Optional[float] = None, **scope_kwargs) -> bool:
        """集合中是否存在间距小于 threshold 的相邻条目

        只是提示，不会自动 rebalance。
        """
        scope_value = self._scope(scope, scope_kwargs)
        if threshold is None:
            threshold = self.schema.rebalance_threshold
        column = self.schema.order_column
        values = self._store().scalars(self._select([column], scope_value).order_by(column.asc()))
        return arithmetic.has_tight_gap(values, threshold)

    def rebalance(self, scope: Any = None, order_by: Any = None, desc: bool = False, **scope_kwargs) -> int:
        """把集合的排序值重置为 increment 的整数倍

        Args:
            scope: 任意 scope 输入
            order_by: 排序依据（字段名或列表达式），默认为排序字段；
                为已有数据初始化排序时可以传 "created_at" 等
            desc: 是否降序

        Returns:
            更新的条目数
        """
        scope_value = self._scope(scope, scope_kwargs)
        return rebalance_partition(self._store(), self.schema, scope_value, order_by=order_by, desc=desc)
