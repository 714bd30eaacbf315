"""ORM 어댑터 모듈.

``user``, ``group``, ``user_groups`` 세 테이블의 스키마와 엔진/세션 팩토리
초기화 함수를 제공합니다.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, Type

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import Pool

if TYPE_CHECKING:
    from fastgroup.config import FastGroup

SessionMaker = Callable[[], Session]
"""Session 팩토리 타입."""

metadata = MetaData()

user_table = Table(
    "user",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
)

group_table = Table(
    "group",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False, unique=True),
)

user_groups_table = Table(
    "user_groups",
    metadata,
    Column(
        "userId",
        String(36),
        ForeignKey("user.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "groupId",
        String(36),
        ForeignKey("group.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

__session_factory: Optional[SessionMaker] = None


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    # SQLite 는 커넥션마다 외래키 검사를 켜야 ON DELETE CASCADE 가 동작합니다.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine(
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    show_log: bool = False,
    isolation_level: Optional[str] = None,
    drop_all: bool = False,
) -> Engine:
    """ORM Engine을 초기화 하고 테이블을 생성합니다.

    Args:
        url: SqlAlchemy 형식의 DB URL.
        connect_args: DB 드라이버에 전달할 접속 인자.
        poolclass: 커넥션 풀 클래스. ``None`` 이면 드라이버 기본값을 씁니다.
        show_log: 실행되는 SQL 을 로그로 출력할지 여부.
        isolation_level: 트랜잭션 격리 수준. 예: ``"READ COMMITTED"``.
        drop_all: 테이블을 모두 지우고 다시 만들지 여부.
    """
    kwargs: dict[str, Any] = dict(connect_args=connect_args or {}, echo=show_log)
    if poolclass:
        kwargs["poolclass"] = poolclass
    if isolation_level:
        kwargs["isolation_level"] = isolation_level

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    if drop_all:
        metadata.drop_all(engine)

    metadata.create_all(engine)

    return engine


def init_db(
    db_url: Optional[str] = None,
    drop_all: bool = False,
    show_log: bool = False,
    config: Optional[FastGroup] = None,
) -> SessionMaker:
    """DB 엔진을 초기화 하고 Session 팩토리를 리턴합니다.

    ``db_url`` 이 주어지지 않으면 ``config`` 설정을, 둘 다 없으면
    메모리 SQLite DB를 사용합니다.
    """
    engine = init_engine(
        db_url if db_url else (config.get_db_url() if config else "sqlite://"),
        connect_args=config.get_db_connect_args() if config else None,
        poolclass=config.get_db_poolclass() if config else None,
        isolation_level=config.get_isolation_level() if config else None,
        drop_all=drop_all,
        show_log=show_log,
    )
    return sessionmaker(engine, expire_on_commit=False)


def get_sessionmaker() -> SessionMaker:
    """기본설정으로 SqlAlchemy Session 팩토리를 만듭니다."""
    from fastgroup.config import get_config

    global __session_factory

    if not __session_factory:
        __session_factory = init_db(config=get_config())

    return __session_factory


def set_default_sessionmaker(session_factory: Optional[SessionMaker]) -> None:
    """:func:`get_sessionmaker` 가 리턴할 기본 Session 팩토리를 교체합니다."""
    global __session_factory

    __session_factory = session_factory
