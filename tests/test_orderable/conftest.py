"""排序测试 Fixtures"""

import pytest
from sqlalchemy.orm import sessionmaker

from .models import Base, ItemSet


@pytest.fixture
def session(memory_engine):
    """建表并返回会话"""
    Base.metadata.create_all(bind=memory_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=True, bind=memory_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def item_sets(session):
    """两个集合"""
    sets = [ItemSet(name="set_1"), ItemSet(name="set_2")]
    session.add_all(sets)
    session.flush()
    return sets
