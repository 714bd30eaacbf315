# pylint: disable=redefined-outer-name
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fastgroup.config import Config, set_config
from fastgroup.orm import SessionMaker, init_db, init_engine, set_default_sessionmaker
from fastgroup.test.unit import FakeUnitOfWork
from fastgroup.uow import SqlAlchemyUnitOfWork


@pytest.fixture
def get_session() -> SessionMaker:
    """테스트마다 새로 만든 메모리 SQLite DB의 Session 팩토리를 리턴합니다.

    API 테스트에서 다른 스레드가 같은 커넥션을 쓸 수 있도록 하나의 커넥션을 공유합니다.
    """
    engine = init_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def session(get_session: SessionMaker) -> Session:
    """테스트에 사용될 새로운 :class:`.Session` 픽스처를 리턴합니다."""
    return get_session()


@pytest.fixture
def file_sessionmaker(tmp_path: Path) -> SessionMaker:
    """여러 커넥션이 동시에 접근할 수 있는 파일 SQLite DB의 Session 팩토리."""
    config = Config(name="test", db_url=f"sqlite:///{tmp_path / 'fastgroup.db'}")
    return init_db(config=config)


@pytest.fixture
def uow(get_session: SessionMaker) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(get_session)


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture(params=["sqlalchemy", "fake"])
def any_uow(request):
    """SqlAlchemy 구현과 메모리 구현이 같은 계약을 지키는지 확인할 때 사용합니다."""
    if request.param == "sqlalchemy":
        return SqlAlchemyUnitOfWork(request.getfixturevalue("get_session"))
    return FakeUnitOfWork()


@pytest.fixture(autouse=True)
def reset_config():
    yield
    set_config(None)
    set_default_sessionmaker(None)
