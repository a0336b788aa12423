"""排序测试模型

- sets / items:             条目属于集合（单字段 scope）
- templates:                全局排序（无 scope）
- projects / project_items: 多字段 scope (project_id, status)
- tasks / users / task_users: 复合主键中间表，scope 为 user_id
- statuses / user_task_positions: 跨表 scope，status_id 在 tasks 上
- todos:                    使用 OrderFieldMixin + OrderableMixin
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from yorder.orderable import OrderFieldMixin, OrderableMixin


class Base(DeclarativeBase):
    pass


# ==================== 集合与条目 ====================

class ItemSet(Base):
    __tablename__ = "sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), default="")


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    set_id: Mapped[Optional[int]] = mapped_column(ForeignKey("sets.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(50), default="")
    position: Mapped[float] = mapped_column(Float, default=0.0)

    item_set: Mapped[Optional[ItemSet]] = relationship()


# ==================== 全局排序 ====================

class Template(Base):
    __tablename__ = "templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), default="")
    order_index: Mapped[float] = mapped_column(Float, default=0.0)


# ==================== 多字段 scope ====================

class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), default="")


class ProjectItem(Base):
    __tablename__ = "project_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"))
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    name: Mapped[str] = mapped_column(String(50), default="")
    position: Mapped[float] = mapped_column(Float, default=0.0)


# ==================== 复合主键 ====================

class Status(Base):
    __tablename__ = "statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), default="")


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(50), default="")
    status_id: Mapped[Optional[int]] = mapped_column(ForeignKey("statuses.id"), nullable=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), default="")


class TaskUser(Base):
    __tablename__ = "task_users"

    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id"), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    position: Mapped[float] = mapped_column(Float)


# ==================== 跨表 scope ====================

class UserTaskPosition(Base):
    __tablename__ = "user_task_positions"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id"), primary_key=True)
    position: Mapped[float] = mapped_column(Float)

    user: Mapped[User] = relationship()
    task: Mapped[Task] = relationship()


# ==================== Mixin ====================

class Todo(Base, OrderFieldMixin, OrderableMixin):
    __tablename__ = "todos"
    __order_scope__ = "user_id"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer)
    title: Mapped[str] = mapped_column(String(50), default="")


# ==================== 数据构造 ====================

def create_items(session, item_set, count: int, increment: float = 1000.0) -> list:
    """在集合中创建 count 个条目，排序值为 increment * k"""
    items = [
        Item(item_set=item_set, name=f"item_{k}", position=increment * k)
        for k in range(1, count + 1)
    ]
    session.add_all(items)
    session.flush()
    return items


def positions(session, model, order_field: str = "position", **filters) -> list:
    """按主键顺序读取排序值（绕过会话缓存）"""
    column = getattr(model, order_field)
    stmt = session.query(column).filter_by(**filters).order_by(*model.__mapper__.primary_key)
    return [value for (value,) in stmt.all()]
