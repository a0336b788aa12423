"""日志模块

使用示例:
    from yorder.log import setup_logger, get_logger

    setup_logger("yorder", level="DEBUG", log_file="logs/order.log")

    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    orderable_logger,
    orm_logger,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "orderable_logger",
    "orm_logger",
    "logger",
    "get_logger",
]
