"""版本信息"""

__version__ = "0.1.0"
__description__ = "SQLAlchemy 模型的分数索引排序引擎"
