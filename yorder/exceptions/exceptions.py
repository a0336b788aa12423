"""排序引擎异常类定义

定义排序引擎使用的异常类体系。

所有异常都在检测点同步抛出，引擎内部不做任何重试：
它们代表调用方的编程错误，而不是瞬时故障。
数据库层的异常（连接断开、死锁等）原样向上传播。
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。

    使用示例:
        from yorder.exceptions import ErrorCode, OrderableError

        try:
            todo_order.move(todo)
        except OrderableError as e:
            if e.code == ErrorCode.INVALID_MOVE_ARGUMENTS:
                ...
    """

    # ==================== 通用错误 ====================
    ORDERABLE_ERROR = "ORDERABLE_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"

    # ==================== 范围解析 ====================
    MISSING_SCOPE_FIELD = "MISSING_SCOPE_FIELD"
    AMBIGUOUS_SCOPE_MAPPING = "AMBIGUOUS_SCOPE_MAPPING"
    ASSOCIATION_NOT_LOADED = "ASSOCIATION_NOT_LOADED"
    UNKNOWN_INPUT_SHAPE = "UNKNOWN_INPUT_SHAPE"

    # ==================== 移动操作 ====================
    INVALID_MOVE_ARGUMENTS = "INVALID_MOVE_ARGUMENTS"
    NEIGHBOR_NOT_FOUND = "NEIGHBOR_NOT_FOUND"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class OrderableError(Exception):
    """排序引擎异常基类

    属性:
        message: 错误消息
        code: 错误代码（ErrorCode 枚举或字符串）
        details: 详细错误信息列表
        extra: 额外的上下文信息

    使用示例:
        raise OrderableError("排序失败", code=ErrorCode.ORDERABLE_ERROR)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.ORDERABLE_ERROR,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式

        Returns:
            包含异常信息的字典
        """
        return {
            "message": self.message,
            "code": self.code,
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra),
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r})"
        )


class OrderableConfigError(OrderableError):
    """排序配置错误

    构造 Orderable 时检测到无效配置（字段不存在、外键找不到关联等）。
    """

    def __init__(self, message: str, **extra: Any):
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, **extra)


class MissingScopeField(OrderableError):
    """显式范围映射缺少必需的范围字段

    Attributes:
        field: 缺失的字段名
    """

    def __init__(self, field: str, provided: Sequence[str] = ()):
        self.field = field
        super().__init__(
            f"范围参数缺少字段 '{field}'",
            code=ErrorCode.MISSING_SCOPE_FIELD,
            details=[f"已提供字段: {sorted(provided)}"] if provided else None,
            field=field,
        )


class AmbiguousScopeMapping(OrderableError):
    """单个裸标识符无法对应到多个范围字段

    Attributes:
        scope_fields: 配置的范围字段列表
    """

    def __init__(self, scope_fields: Sequence[str]):
        self.scope_fields = tuple(scope_fields)
        super().__init__(
            f"无法将单个标识符映射到多个范围字段 {list(self.scope_fields)}，"
            f"请使用字典或关键字参数显式指定",
            code=ErrorCode.AMBIGUOUS_SCOPE_MAPPING,
            scope_fields=list(self.scope_fields),
        )


class AssociationNotLoaded(OrderableError):
    """关联范围字段所在的关联对象未预加载

    引擎不会自动发起额外查询，调用方需要预加载关联
    （例如 selectinload / joinedload），或改用显式范围参数。

    Attributes:
        association: 关联属性名
        field: 需要解析的范围字段
    """

    def __init__(self, association: str, field: str, reason: str = "未加载"):
        self.association = association
        self.field = field
        super().__init__(
            f"关联 '{association}' {reason}，无法解析范围字段 '{field}'。"
            f"请预加载该关联或以字典形式传入范围",
            code=ErrorCode.ASSOCIATION_NOT_LOADED,
            association=association,
            field=field,
        )


class InvalidMoveArguments(OrderableError):
    """move 参数无效

    未提供 direction / between、同时提供两者、方向未知，
    或者没有传入条目实例。
    """

    def __init__(self, message: str = "move 需要 direction 或 between 参数", **extra: Any):
        super().__init__(message, code=ErrorCode.INVALID_MOVE_ARGUMENTS, **extra)


class UnknownInputShape(OrderableError):
    """范围输入不属于任何可接受的形式

    Attributes:
        value: 原始输入
    """

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"期望条目实例、字典或父对象，实际得到: {value!r}",
            code=ErrorCode.UNKNOWN_INPUT_SHAPE,
            value_type=type(value).__name__,
        )


class NeighborNotFound(OrderableError):
    """between / insert 指定的相邻条目在当前集合中不存在

    Attributes:
        identity: 查找使用的主键字典
    """

    def __init__(self, identity: Dict[str, Any]):
        self.identity = dict(identity)
        super().__init__(
            f"当前集合中找不到条目 {self.identity}",
            code=ErrorCode.NEIGHBOR_NOT_FOUND,
            identity=self.identity,
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
