"""
scope 解析

调用方可以用多种形式指定分区：条目实例、字典/关键字参数、父对象或裸 id、
None（全局）。scope_input() 在入口处把原始输入归类为一种带标签的输入，
各输入类型各自实现 resolve(schema) -> ScopeValue。

解析过程不访问数据库：跨表字段只从已预加载的关联对象读取。

使用示例:
    value = resolve(item, schema)
    value = resolve({"user_id": 1, "status_id": 2}, schema)
    value = resolve(project, schema)  # 等价于 {"project_id": project.id}
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from yorder.exceptions import (
    AmbiguousScopeMapping,
    AssociationNotLoaded,
    MissingScopeField,
    UnknownInputShape,
)

from .schema import OrderableSchema
from .store import association_loaded


_BARE_ID_TYPES = (int, str, uuid.UUID)


@dataclass(frozen=True)
class ScopeValue:
    """解析后的分区键

    (字段, 值) 二元组的有序元组，按 scope 声明顺序排列。
    值允许为 None，查询时编译为 IS NULL。
    """
    pairs: Tuple[Tuple[str, Any], ...] = ()

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(field for field, _ in self.pairs)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.pairs)


GLOBAL = ScopeValue()


# ==================== 输入类型 ====================

@dataclass(frozen=True)
class ScopeMap:
    """字典或关键字参数，必须包含全部 scope 字段，多余的键忽略"""
    values: Mapping[str, Any]

    def resolve(self, schema: OrderableSchema) -> ScopeValue:
        pairs = []
        for field in schema.scope:
            if field not in self.values:
                raise MissingScopeField(field, provided=list(self.values))
            pairs.append((field, self.values[field]))
        return ScopeValue(tuple(pairs))


@dataclass(frozen=True)
class ItemScope:
    """被排序模型的实例"""
    item: Any

    def resolve(self, schema: OrderableSchema) -> ScopeValue:
        state = inspect(self.item)
        pairs = []
        for field in schema.scope:
            join = schema.join_for(field)
            if join is None:
                pairs.append((field, getattr(self.item, field)))
                continue

            # 不触发 lazy load
            if not association_loaded(self.item, join.association):
                raise AssociationNotLoaded(join.association, field)
            related = state.dict.get(join.association)
            if related is None:
                raise AssociationNotLoaded(join.association, field, reason="为空")
            pairs.append((field, getattr(related, field)))
        return ScopeValue(tuple(pairs))


@dataclass(frozen=True)
class ParentScope:
    """父对象或裸 id，只能对应唯一的 scope 字段"""
    identifier: Any

    def resolve(self, schema: OrderableSchema) -> ScopeValue:
        if len(schema.scope) > 1:
            raise AmbiguousScopeMapping(schema.scope)
        return ScopeValue(((schema.scope[0], self.identifier),))


@dataclass(frozen=True)
class GlobalScope:
    """未指定分区，仅适用于全局排序"""

    def resolve(self, schema: OrderableSchema) -> ScopeValue:
        if schema.scope:
            raise MissingScopeField(schema.scope[0])
        return GLOBAL


# ==================== 分类与解析 ====================

def _single_primary_key(obj) -> Tuple[bool, Any]:
    """映射实例只有一个主键时返回 (True, 主键值)"""
    try:
        mapper = inspect(type(obj))
    except NoInspectionAvailable:
        return False, None
    if len(mapper.primary_key) != 1:
        return False, None
    key = mapper.get_property_by_column(mapper.primary_key[0]).key
    return True, getattr(obj, key)


def scope_input(raw: Any, schema: OrderableSchema):
    """把原始输入归类为带标签的输入类型

    Raises:
        UnknownInputShape: 无法识别的输入
    """
    if not schema.scope:
        return GlobalScope()
    if raw is None:
        return GlobalScope()
    if isinstance(raw, ScopeValue):
        return ScopeMap(raw.as_dict())
    if isinstance(raw, Mapping):
        if not raw:
            return GlobalScope()
        return ScopeMap(raw)
    if isinstance(raw, schema.model):
        return ItemScope(raw)
    if isinstance(raw, bool):
        raise UnknownInputShape(raw)
    if isinstance(raw, _BARE_ID_TYPES):
        return ParentScope(raw)

    found, pk = _single_primary_key(raw)
    if found:
        return ParentScope(pk)
    if hasattr(raw, "id"):
        return ParentScope(raw.id)

    raise UnknownInputShape(raw)


def resolve(raw: Any, schema: OrderableSchema) -> ScopeValue:
    """把任意 scope 输入解析为 ScopeValue"""
    return scope_input(raw, schema).resolve(schema)
