"""UnitOfWork 패턴 모듈.

SqlAlchemy를 이용한 기본 구현체를 제공합니다.
"""
from __future__ import annotations

from typing import Callable, Optional

from fastgroup.core import (
    AbstractUnitOfWork,
    GroupRepository,
    RepositoryContext,
    UserRepository,
)
from fastgroup.orm import Session, SessionMaker, get_sessionmaker
from fastgroup.repo import SqlAlchemyGroupRepository, SqlAlchemyUserRepository

UserRepoMaker = Callable[[Session], UserRepository]
GroupRepoMaker = Callable[[Session], GroupRepository]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork[Session]):
    """``SqlAlchemy`` Session 을 트랜잭션 스코프로 사용하는 UnitOfWork 구현입니다.

    호출마다 ``get_session`` 으로 새 세션을 열고, 그 세션을 생성자 인자로 받은
    레포지터리들로 :class:`RepositoryContext` 를 구성합니다.
    """

    def __init__(
        self,
        get_session: Optional[SessionMaker] = None,
        user_repo_maker: Optional[UserRepoMaker] = None,
        group_repo_maker: Optional[GroupRepoMaker] = None,
    ) -> None:
        """``SqlAlchemy`` 기반의 UoW를 초기화합니다."""
        super().__init__()
        self.get_session = get_session or get_sessionmaker()
        self.user_repo_maker = user_repo_maker or SqlAlchemyUserRepository
        self.group_repo_maker = group_repo_maker or SqlAlchemyGroupRepository

    def __repr__(self):
        return f"SqlAlchemyUnitOfWork[{self.get_session}]"

    def _begin(self) -> Session:
        session = self.get_session()
        session.begin()
        return session

    def _make_context(self, session: Session) -> RepositoryContext:
        return RepositoryContext(
            users=self.user_repo_maker(session),
            groups=self.group_repo_maker(session),
        )

    def _commit(self, session: Session) -> None:
        session.commit()

    def _rollback(self, session: Session) -> None:
        session.rollback()

    def _close(self, session: Session) -> None:
        session.close()
