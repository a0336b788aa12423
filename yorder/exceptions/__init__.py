"""异常模块

提供排序引擎的异常类体系。

使用示例:
    from yorder.exceptions import OrderableError, AssociationNotLoaded

    try:
        order.move(position, direction="up")
    except AssociationNotLoaded:
        position = session.scalars(
            select(UserTaskPosition).options(selectinload(UserTaskPosition.task))
        ).first()
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    OrderableError,
    OrderableConfigError,
    MissingScopeField,
    AmbiguousScopeMapping,
    AssociationNotLoaded,
    InvalidMoveArguments,
    UnknownInputShape,
    NeighborNotFound,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "OrderableError",
    "OrderableConfigError",
    "MissingScopeField",
    "AmbiguousScopeMapping",
    "AssociationNotLoaded",
    "InvalidMoveArguments",
    "UnknownInputShape",
    "NeighborNotFound",
]
