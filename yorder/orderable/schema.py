"""
排序配置描述

OrderableSchema 是一次构建、之后不可变的配置对象，描述被排序的模型、
主键字段、排序字段、分区（scope）字段以及跨表 scope 字段的关联方式。

构建时对照 SQLAlchemy mapper 校验配置，错误的字段名或外键会在这里
直接报 OrderableConfigError，而不是等到第一次查询才暴露。

使用示例:
    schema = OrderableSchema.build(
        UserTaskPosition,
        scope=["user_id", "status_id"],
        scope_join={"status_id": (Task, "task_id")},
    )
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import MANYTOONE

from yorder.exceptions import OrderableConfigError


@dataclass(frozen=True)
class ScopeJoin:
    """跨表 scope 字段

    Attributes:
        field: 关联模型上的 scope 字段名
        related_model: 关联模型类
        foreign_key: 本模型上指向关联模型主键的外键字段
        association: 本模型上对应的多对一 relationship 属性名
    """
    field: str
    related_model: type
    foreign_key: str
    association: str


@dataclass(frozen=True)
class OrderableSchema:
    model: type
    primary_key: Tuple[str, ...]
    order_field: str = "position"
    increment: float = 1000.0
    scope: Tuple[str, ...] = ()
    scope_join: Tuple[ScopeJoin, ...] = ()
    rebalance_threshold: float = 0.001
    refine: Optional[Callable[[Any, Any], Any]] = None

    @classmethod
    def build(
        cls,
        model: type,
        scope: Iterable[str] = (),
        scope_join: Optional[Mapping[str, Tuple[type, str]]] = None,
        order_field: str = "position",
        increment: float = 1000.0,
        rebalance_threshold: float = 0.001,
        refine: Optional[Callable[[Any, Any], Any]] = None,
    ) -> "OrderableSchema":
        """校验配置并构建 schema

        Args:
            model: 被排序的 SQLAlchemy 模型类
            scope: 分区字段名列表，空表示全局排序
            scope_join: {scope 字段: (关联模型, 本模型外键字段)}
            order_field: 排序字段名
            increment: 相邻条目默认间距
            rebalance_threshold: needs_rebalance 的默认阈值
            refine: 读取时追加条件的钩子 refine(stmt, scope_value) -> stmt

        Raises:
            OrderableConfigError: 配置与模型不匹配
        """
        if isinstance(scope, str):
            scope = (scope,)
        scope = tuple(scope)

        mapper = _mapper_of(model)
        columns = set(mapper.column_attrs.keys())

        if order_field not in columns:
            raise OrderableConfigError(
                f"{model.__name__} 没有排序字段 '{order_field}'",
                model=model.__name__,
                field=order_field,
            )
        if increment <= 0:
            raise OrderableConfigError(f"increment 必须大于 0，当前为 {increment}", increment=increment)
        if rebalance_threshold < 0:
            raise OrderableConfigError(
                f"rebalance_threshold 不能为负数，当前为 {rebalance_threshold}",
                rebalance_threshold=rebalance_threshold,
            )
        if len(set(scope)) != len(scope):
            raise OrderableConfigError(f"scope 字段重复: {list(scope)}", scope=list(scope))

        joins = _build_joins(model, mapper, scope, scope_join or {})
        joined_fields = {j.field for j in joins}

        for field in scope:
            if field not in joined_fields and field not in columns:
                raise OrderableConfigError(
                    f"{model.__name__} 没有 scope 字段 '{field}'",
                    model=model.__name__,
                    field=field,
                )

        return cls(
            model=model,
            primary_key=primary_key_names(model),
            order_field=order_field,
            increment=float(increment),
            scope=scope,
            scope_join=joins,
            rebalance_threshold=float(rebalance_threshold),
            refine=refine,
        )

    # ==================== 查询辅助 ====================

    def join_for(self, field: str) -> Optional[ScopeJoin]:
        """返回 field 对应的 ScopeJoin，本地字段返回 None"""
        for join in self.scope_join:
            if join.field == field:
                return join
        return None

    @property
    def order_column(self):
        return getattr(self.model, self.order_field)

    @property
    def pk_columns(self) -> list:
        return [getattr(self.model, name) for name in self.primary_key]


def _mapper_of(model):
    try:
        return inspect(model)
    except NoInspectionAvailable:
        raise OrderableConfigError(
            f"{model!r} 不是 SQLAlchemy 映射模型",
            model=repr(model),
        ) from None


def primary_key_names(model) -> Tuple[str, ...]:
    mapper = _mapper_of(model)
    return tuple(mapper.get_property_by_column(col).key for col in mapper.primary_key)


def _find_association(mapper, foreign_key: str, related_model) -> Optional[str]:
    """找到以 foreign_key 为本地列的多对一 relationship"""
    fk_columns = mapper.column_attrs[foreign_key].columns
    for rel in mapper.relationships:
        if rel.direction is not MANYTOONE:
            continue
        if not issubclass(rel.mapper.class_, related_model) and not issubclass(related_model, rel.mapper.class_):
            continue
        if any(col in rel.local_columns for col in fk_columns):
            return rel.key
    return None


def _build_joins(model, mapper, scope, scope_join: Mapping) -> Tuple[ScopeJoin, ...]:
    joins = []
    columns = set(mapper.column_attrs.keys())
    for field, target in scope_join.items():
        if field not in scope:
            raise OrderableConfigError(
                f"scope_join 字段 '{field}' 不在 scope 列表中",
                field=field,
                scope=list(scope),
            )
        try:
            related_model, foreign_key = target
        except (TypeError, ValueError):
            raise OrderableConfigError(
                f"scope_join['{field}'] 必须是 (关联模型, 外键字段) 二元组",
                field=field,
            ) from None

        related_mapper = _mapper_of(related_model)
        if field not in related_mapper.column_attrs.keys():
            raise OrderableConfigError(
                f"{related_model.__name__} 没有字段 '{field}'",
                model=related_model.__name__,
                field=field,
            )
        if foreign_key not in columns:
            raise OrderableConfigError(
                f"{model.__name__} 没有外键字段 '{foreign_key}'",
                model=model.__name__,
                foreign_key=foreign_key,
            )

        association = _find_association(mapper, foreign_key, related_model)
        if association is None:
            raise OrderableConfigError(
                f"{model.__name__} 上找不到以 '{foreign_key}' 为外键、指向 "
                f"{related_model.__name__} 的多对一关系",
                model=model.__name__,
                foreign_key=foreign_key,
            )

        joins.append(ScopeJoin(
            field=field,
            related_model=related_model,
            foreign_key=foreign_key,
            association=association,
        ))
    # 按 scope 声明顺序排列
    joins.sort(key=lambda j: scope.index(j.field))
    return tuple(joins)
