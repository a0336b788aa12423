"""db_session 测试"""

import pytest
from sqlalchemy import Integer, String, select, text
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from yorder.config import DatabaseSettings
from yorder.orm import DatabaseManager, db_manager, db_session_scope, get_engine, init_database


class Base(DeclarativeBase):
    pass


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    body: Mapped[str] = mapped_column(String(50), default="")


@pytest.fixture
def memory_db():
    init_database("sqlite://")
    Base.metadata.create_all(bind=db_manager.engine)
    yield db_manager
    db_manager.dispose()


class TestDatabaseManager:
    """DatabaseManager 测试"""

    def test_singleton(self):
        assert DatabaseManager() is db_manager

    def test_not_initialized(self):
        db_manager.dispose()
        assert db_manager.is_initialized is False
        with pytest.raises(RuntimeError):
            _ = db_manager.engine
        with pytest.raises(RuntimeError):
            db_manager.get_session()
        with pytest.raises(RuntimeError):
            get_engine()

    def test_url_required(self):
        with pytest.raises(ValueError):
            init_database()

    def test_memory_database_uses_static_pool(self, memory_db):
        assert isinstance(get_engine().pool, StaticPool)
        assert memory_db.is_initialized is True

    def test_init_from_config(self):
        engine, session_scope = init_database(config=DatabaseSettings(url="sqlite://", echo=True))
        try:
            assert engine.echo is True
            assert isinstance(session_scope(), Session)
        finally:
            db_manager.dispose()

    def test_reinit_disposes_previous_engine(self, memory_db):
        first = get_engine()
        init_database("sqlite://")
        assert get_engine() is not first

    def test_session_is_thread_scoped(self, memory_db):
        assert memory_db.get_session() is memory_db.get_session()

    def test_cleanup_is_idempotent(self, memory_db):
        session = memory_db.get_session()
        memory_db.cleanup()
        memory_db.cleanup()
        assert memory_db.get_session() is not session

    def test_file_database(self, temp_dir):
        engine, _ = init_database(f"sqlite:///{temp_dir}/db_session_test.db")
        try:
            with engine.connect() as conn:
                assert conn.execute(text("SELECT 1")).scalar() == 1
        finally:
            db_manager.dispose()


class TestDbSessionScope:
    """db_session_scope 测试"""

    def test_commit_on_success(self, memory_db):
        with db_session_scope() as session:
            session.add(Note(body="saved"))

        with Session(memory_db.engine) as reader:
            assert reader.scalars(select(Note.body)).all() == ["saved"]

    def test_rollback_on_error(self, memory_db):
        with pytest.raises(RuntimeError):
            with db_session_scope() as session:
                session.add(Note(body="lost"))
                session.flush()
                raise RuntimeError("中止")

        with Session(memory_db.engine) as reader:
            assert reader.scalars(select(Note.body)).all() == []

    def test_no_auto_commit(self, memory_db):
        with db_session_scope(auto_commit=False) as session:
            session.add(Note(body="pending"))
            session.flush()

        with Session(memory_db.engine) as reader:
            assert reader.scalars(select(Note.body)).all() == []

    def test_session_removed_after_scope(self, memory_db):
        with db_session_scope() as session:
            pass
        assert memory_db.get_session() is not session
