"""跨表 scope 测试

user_task_positions 保存每个用户看板上的任务顺序，看板的列由任务的
status_id 决定，而 status_id 在 tasks 表上：
scope = (user_id, status_id)，status_id 通过 task_id 关联到 tasks。
"""

import pytest
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from yorder.exceptions import AssociationNotLoaded, NeighborNotFound
from yorder.orderable import Orderable

from .models import Status, Task, User, UserTaskPosition, positions


@pytest.fixture
def board_order(session):
    return Orderable(
        UserTaskPosition,
        scope=["user_id", "status_id"],
        scope_join={"status_id": (Task, "task_id")},
        session=session,
    )


@pytest.fixture
def board(session):
    """alice 的看板: todo 列 4 个任务，doing 列 2 个任务；bob 也分配了 todo 列的前 2 个任务"""
    alice, bob = User(name="alice"), User(name="bob")
    todo, doing = Status(name="todo"), Status(name="doing")
    session.add_all([alice, bob, todo, doing])
    session.flush()

    todo_tasks = [Task(title=f"todo_{k}", status_id=todo.id) for k in range(1, 5)]
    doing_tasks = [Task(title=f"doing_{k}", status_id=doing.id) for k in range(1, 3)]
    session.add_all(todo_tasks + doing_tasks)
    session.flush()

    alice_todo = [
        UserTaskPosition(user=alice, task=task, position=k * 1000.0)
        for k, task in enumerate(todo_tasks, 1)
    ]
    alice_doing = [
        UserTaskPosition(user=alice, task=task, position=k * 1000.0)
        for k, task in enumerate(doing_tasks, 1)
    ]
    bob_todo = [
        UserTaskPosition(user=bob, task=task, position=k * 1000.0)
        for k, task in enumerate(todo_tasks[:2], 1)
    ]
    session.add_all(alice_todo + alice_doing + bob_todo)
    session.flush()

    return {
        "alice": alice,
        "bob": bob,
        "todo": todo,
        "doing": doing,
        "todo_tasks": todo_tasks,
        "doing_tasks": doing_tasks,
        "alice_todo": alice_todo,
        "alice_doing": alice_doing,
        "bob_todo": bob_todo,
    }


class TestScopeJoinRead:
    """跨表 scope 读取测试"""

    def test_count_with_mapping(self, board_order, board):
        alice, todo, doing = board["alice"], board["todo"], board["doing"]
        assert board_order.count(user_id=alice.id, status_id=todo.id) == 4
        assert board_order.count({"user_id": alice.id, "status_id": doing.id}) == 2
        assert board_order.count(user_id=board["bob"].id, status_id=todo.id) == 2

    def test_next_order_from_item(self, board_order, board):
        """条目实例的 task 关联已加载时可以直接推断分区"""
        assert board_order.next_order(board["alice_todo"][0]) == 5000.0
        assert board_order.next_order(board["alice_doing"][0]) == 3000.0

    def test_siblings(self, session, board_order, board):
        alice, doing = board["alice"], board["doing"]
        rows = session.scalars(board_order.siblings(user_id=alice.id, status_id=doing.id)).all()
        assert [row.task_id for row in rows] == [task.id for task in board["doing_tasks"]]

    def test_empty_column(self, board_order, board):
        assert board_order.first_order(user_id=board["bob"].id, status_id=board["doing"].id) == 0.0


class TestScopeJoinMove:
    """跨表 scope 移动测试"""

    def test_move_up_stays_in_column(self, session, board_order, board):
        alice = board["alice"]
        doing_before = positions(session, UserTaskPosition, user_id=alice.id)[4:]

        board_order.move(board["alice_todo"][3], direction="up")

        assert board["alice_todo"][3].position == 2500.0
        assert positions(session, UserTaskPosition, user_id=alice.id)[4:] == doing_before

    def test_move_between_with_task_ids(self, board_order, board):
        """user_id 由被移动的行推断，只需要传 task_id"""
        tasks = board["todo_tasks"]
        board_order.move(board["alice_todo"][3], between=(tasks[0].id, tasks[1].id))
        assert board["alice_todo"][3].position == 1500.0

    def test_neighbor_in_other_column(self, board_order, board):
        with pytest.raises(NeighborNotFound):
            board_order.move(board["alice_todo"][0], between=(board["doing_tasks"][0].id, None))

    def test_other_user_unchanged(self, session, board_order, board):
        bob = board["bob"]
        board_order.move(board["alice_todo"][1], direction="up")
        assert positions(session, UserTaskPosition, user_id=bob.id) == [1000.0, 2000.0]

    def test_rebalance_column(self, session, board_order, board):
        alice, todo = board["alice"], board["todo"]
        tasks = board["todo_tasks"]
        board_order.move(board["alice_todo"][3], between=(tasks[0].id, tasks[1].id))

        assert board_order.rebalance(user_id=alice.id, status_id=todo.id) == 4
        assert positions(session, UserTaskPosition, user_id=alice.id) == [
            1000.0, 3000.0, 4000.0, 2000.0, 1000.0, 2000.0,
        ]


class TestScopeJoinPreload:
    """关联预加载测试"""

    def _reload(self, session, board):
        ids = (board["alice"].id, board["todo_tasks"][3].id)
        session.commit()
        session.expunge_all()
        return ids

    def test_move_without_preload(self, session, board_order, board):
        user_id, task_id = self._reload(session, board)
        row = session.get(UserTaskPosition, {"user_id": user_id, "task_id": task_id})
        with pytest.raises(AssociationNotLoaded) as exc_info:
            board_order.move(row, direction="up")
        assert exc_info.value.association == "task"
        assert exc_info.value.field == "status_id"

    def test_move_with_preload(self, session, board_order, board):
        user_id, task_id = self._reload(session, board)
        row = session.scalars(
            select(UserTaskPosition)
            .where(UserTaskPosition.user_id == user_id, UserTaskPosition.task_id == task_id)
            .options(selectinload(UserTaskPosition.task))
        ).one()
        board_order.move(row, direction="up")
        assert row.position == 2500.0
