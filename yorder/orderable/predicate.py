"""
分区谓词

build_predicate() 把 ScopeValue 转换成与后端无关的 Predicate 描述，
apply_predicate() 再把它编译到 SQLAlchemy Select 上。

- 本地字段:  model.field = value
- 跨表字段:  JOIN related ON model.foreign_key = related.pk，related.field = value
- 值为 None: IS NULL
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from sqlalchemy import Select

from .schema import OrderableSchema, primary_key_names
from .scope import ScopeValue


@dataclass(frozen=True)
class Join:
    related_model: type
    foreign_key: str


@dataclass(frozen=True)
class Constraint:
    """entity 为 None 表示被排序模型本身"""
    entity: Optional[type]
    field: str
    value: Any


@dataclass(frozen=True)
class Predicate:
    joins: Tuple[Join, ...] = ()
    constraints: Tuple[Constraint, ...] = ()

    def and_(self, *constraints: Constraint) -> "Predicate":
        """追加约束，原有约束全部保留"""
        return Predicate(self.joins, self.constraints + tuple(constraints))


def build_predicate(scope_value: ScopeValue, schema: OrderableSchema) -> Predicate:
    joins = []
    constraints = []
    for field, value in scope_value:
        join = schema.join_for(field)
        if join is None:
            constraints.append(Constraint(None, field, value))
            continue
        if all(j.related_model is not join.related_model for j in joins):
            joins.append(Join(join.related_model, join.foreign_key))
        constraints.append(Constraint(join.related_model, field, value))
    return Predicate(tuple(joins), tuple(constraints))


def apply_predicate(stmt: Select, model: type, predicate: Predicate) -> Select:
    """把谓词编译到 Select 上

    使用示例:
        stmt = select(Item.position).select_from(Item)
        stmt = apply_predicate(stmt, Item, predicate)
    """
    for join in predicate.joins:
        related_pk = getattr(join.related_model, primary_key_names(join.related_model)[0])
        stmt = stmt.join(join.related_model, getattr(model, join.foreign_key) == related_pk)

    for constraint in predicate.constraints:
        column = getattr(constraint.entity or model, constraint.field)
        if constraint.value is None:
            stmt = stmt.where(column.is_(None))
        else:
            stmt = stmt.where(column == constraint.value)
    return stmt


def partition_select(stmt: Select, schema: OrderableSchema, scope_value: ScopeValue) -> Select:
    """追加分区谓词，再应用 refine 钩子

    Select.where 只能收窄结果，refine 无法放宽分区条件。
    """
    stmt = apply_predicate(stmt, schema.model, build_predicate(scope_value, schema))
    if schema.refine is not None:
        stmt = schema.refine(stmt, scope_value)
    return stmt
