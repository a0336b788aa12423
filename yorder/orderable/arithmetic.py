"""
排序值计算

纯函数，只处理已经查询出来的排序值，不访问数据库。

排序值为浮点数（分数索引）：移动条目时取相邻两个值的中点，
不需要为其他条目重新编号。反复取中点会耗尽浮点精度，
此时由 has_tight_gap() 提示需要 rebalance。
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from yorder.exceptions import InvalidMoveArguments


def first_order(minimum: Optional[float]) -> float:
    """集合中的最小排序值，空集合为 0.0"""
    return 0.0 if minimum is None else float(minimum)


def last_order(maximum: Optional[float]) -> float:
    """集合中的最大排序值，空集合为 0.0"""
    return 0.0 if maximum is None else float(maximum)


def next_order(maximum: Optional[float], increment: float) -> float:
    """新条目追加到末尾时的排序值，空集合为 increment"""
    return last_order(maximum) + increment


def move_up_order(current: float, preceding: Sequence[float], increment: float) -> float:
    """上移一位

    Args:
        current: 当前排序值
        preceding: 小于 current 的最近两个不同值，降序
        increment: 间距

    - 没有更小的值: 已经在最前，返回 current
    - 只有 p1: p1 - increment
    - p1, p2: (p1 + p2) / 2，即与前一个条目交换位置
    """
    if not preceding:
        return current
    if len(preceding) == 1:
        return preceding[0] - increment
    p1, p2 = preceding[0], preceding[1]
    return (p1 + p2) / 2


def move_down_order(current: float, following: Sequence[float], increment: float) -> float:
    """下移一位，与 move_up_order 对称"""
    if not following:
        return current
    if len(following) == 1:
        return following[0] + increment
    n1, n2 = following[0], following[1]
    return (n1 + n2) / 2


def between_order(
    current: float,
    before: Optional[float],
    after: Optional[float],
    increment: float,
) -> float:
    """移动到 before 与 after 之间

    两边都为 None 时不移动，返回 current。
    """
    if before is None and after is None:
        return current
    if before is None:
        return after - increment
    if after is None:
        return before + increment
    return (before + after) / 2


def insert_after_order(anchor: float, following: Optional[float], increment: float) -> float:
    """紧跟在 anchor 之后插入"""
    if following is None:
        return anchor + increment
    return (anchor + following) / 2


def insert_before_order(anchor: float, preceding: Optional[float], increment: float) -> float:
    """紧挨在 anchor 之前插入"""
    if preceding is None:
        return anchor - increment
    return (anchor + preceding) / 2


def has_tight_gap(values: Sequence[float], threshold: float) -> bool:
    """升序排列的值中，是否存在相邻差值小于 threshold 的一对

    0 或 1 个值时总是 False。
    """
    return any(b - a < threshold for a, b in zip(values, values[1:]))


def rebalanced_orders(count: int, increment: float) -> list:
    """increment * 1 ... increment * count"""
    return [increment * k for k in range(1, count + 1)]


def neighbor_identity(
    neighbor: Any,
    primary_key: Tuple[str, ...],
    scope: Tuple[str, ...],
    scope_values: Mapping[str, Any],
) -> Dict[str, Any]:
    """把 between 传入的相邻条目 id 补全为完整主键

    复合主键中与 scope 字段重合的部分可以从被移动条目的 scope 推断，
    剩下的部分（identity 字段）只有一个时允许直接传标量。

    Args:
        neighbor: 标量 id 或 {主键字段: 值} 字典
        primary_key: 主键字段
        scope: scope 字段
        scope_values: 被移动条目的 scope 值

    Raises:
        InvalidMoveArguments: 标量无法唯一对应主键，或字典缺少主键字段

    使用示例:
        # task_users 主键 (task_id, user_id)，scope 为 user_id
        neighbor_identity(5, ("task_id", "user_id"), ("user_id",), {"user_id": 1})
        # -> {"task_id": 5, "user_id": 1}
    """
    identity_fields = [f for f in primary_key if f not in scope]

    if isinstance(neighbor, Mapping):
        identity = {}
        for field in primary_key:
            if field in neighbor:
                identity[field] = neighbor[field]
            elif field in scope_values:
                identity[field] = scope_values[field]
            else:
                raise InvalidMoveArguments(
                    f"相邻条目缺少主键字段 '{field}'",
                    neighbor=dict(neighbor),
                )
        return identity

    if len(identity_fields) != 1:
        raise InvalidMoveArguments(
            f"主键 {list(primary_key)} 去掉 scope 字段后剩余 {identity_fields}，"
            f"不能只传单个 id，请传入完整主键字典",
            identity_fields=identity_fields,
        )

    identity = {f: scope_values[f] for f in primary_key if f in scope}
    identity[identity_fields[0]] = neighbor
    return {f: identity[f] for f in primary_key}
