from __future__ import annotations

import abc
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generator, Generic, Optional, TypeVar

from fastgroup.core.errors import NestedTransaction, TransactionFailure
from fastgroup.logging import get_logger

if TYPE_CHECKING:
    from fastgroup.domain import Group, User

E = TypeVar("E")
S = TypeVar("S")
T = TypeVar("T")

logger = get_logger("fastgroup.uow")

_active_uows: ContextVar[frozenset[int]] = ContextVar(
    "fastgroup_active_uows", default=frozenset()
)
"""현재 실행 흐름(스레드/태스크)에서 진행 중인 UoW 의 id 집합."""


class AbstractRepository(Generic[E], abc.ABC):
    """Repository 패턴의 추상 인터페이스 입니다.

    구현체는 생성 시점에 전달받은 트랜잭션 핸들만 사용해야 합니다.
    """

    @abc.abstractmethod
    def create(self, item: E) -> None:
        """레포지터리에 :class:`E` 객체를 추가합니다.

        Raises:
            UniqueConstraintViolation: 유일해야 하는 필드가 기존 데이터와 겹칠 경우.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def list(self) -> list[E]:
        """모든 객체 리스트를 조회합니다. 순서는 보장하지 않습니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def find_by_id(self, id: str) -> Optional[E]:  # pylint: disable=redefined-builtin
        """주어진 id 에 해당하는 객체를 조회합니다.

        못 찾을 경우 ``None`` 을 리턴합니다.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, item: E) -> None:
        """id 가 같은 객체의 필드를 전부 교체합니다.

        해당하는 객체가 없으면 아무 일도 하지 않습니다.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def delete_by_id(self, id: str) -> None:  # pylint: disable=redefined-builtin
        """레포지터리에서 객체를 삭제합니다.

        연결된 membership 은 저장소가 같이 삭제합니다.
        """
        raise NotImplementedError


class UserRepository(AbstractRepository["User"]):
    """:class:`User` 레포지터리 명세."""

    @abc.abstractmethod
    def add_to_group(self, user_id: str, group_id: str) -> None:
        """사용자를 그룹에 추가합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def remove_from_group(self, user_id: str, group_id: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def users_in_group(self, group_id: str) -> list[User]:
        """그룹에 소속된 사용자 리스트를 조회합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def group_ids_for_user(self, user_id: str) -> list[str]:
        """사용자가 소속된 그룹의 id 리스트를 조회합니다."""
        raise NotImplementedError


class GroupRepository(AbstractRepository["Group"]):
    """:class:`Group` 레포지터리 명세."""

    @abc.abstractmethod
    def groups_for_user(self, user_id: str) -> list[Group]:
        """사용자가 소속된 그룹 리스트를 조회합니다."""
        raise NotImplementedError


@dataclass(frozen=True)
class RepositoryContext:
    """하나의 트랜잭션에 묶인 레포지터리 묶음.

    UoW 호출마다 새로 만들어지고, 호출이 끝나면 버려집니다.
    """

    users: UserRepository
    groups: GroupRepository


class AbstractUnitOfWork(Generic[S], abc.ABC):
    """UnitOfWork 패턴의 추상 인터페이스입니다.

    :meth:`execute` 호출마다 새로운 트랜잭션 스코프(``S``)와
    :class:`RepositoryContext` 를 만들기 때문에 하나의 UoW 객체를 여러 스레드에서
    동시에 사용해도 됩니다.

    - 작업이 성공하면 커밋하고 결과를 리턴합니다.
    - 작업이 실패하면(어떤 예외든) 롤백한 후 원래 예외를 그대로 다시 발생시킵니다.
    """

    def execute(self, work: Callable[[RepositoryContext], T]) -> T:
        """``work`` 를 하나의 트랜잭션 안에서 실행합니다."""
        with self.transaction() as ctx:
            return work(ctx)

    @contextmanager
    def transaction(self) -> Generator[RepositoryContext, None, None]:
        """:meth:`execute` 의 ``with`` 블록 버전입니다.

        Example: ::

            with uow.transaction() as ctx:
                ctx.users.create(user)
                ctx.users.add_to_group(user.id, group.id)

        Raises:
            TransactionFailure: 커밋에 실패했거나 같은 UoW 를 중첩해서 호출한 경우.
        """
        active = _active_uows.get()
        if id(self) in active:
            raise NestedTransaction("nested unit of work is not supported")

        token = _active_uows.set(active | {id(self)})
        try:
            scope = self._begin()
            logger.debug("begin: %r", self)
            try:
                yield self._make_context(scope)
            except BaseException:
                self._rollback_quietly(scope)
                raise
            else:
                self._commit_or_fail(scope)
            finally:
                self._close(scope)
        finally:
            _active_uows.reset(token)

    def _commit_or_fail(self, scope: S) -> None:
        try:
            self._commit(scope)
        except Exception as e:
            self._rollback_quietly(scope)
            raise TransactionFailure(f"commit failed: {e}") from e
        logger.debug("committed: %r", self)

    def _rollback_quietly(self, scope: S) -> None:
        """롤백 실패가 진행 중인 원래 예외를 가리지 않도록 로그만 남깁니다."""
        try:
            self._rollback(scope)
            logger.debug("rolled back: %r", self)
        except Exception:
            logger.exception("rollback failed: %r", self)

    @abc.abstractmethod
    def _begin(self) -> S:
        """새로운 트랜잭션 스코프를 엽니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def _make_context(self, scope: S) -> RepositoryContext:
        """``scope`` 에만 묶인 레포지터리들로 컨텍스트를 만듭니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def _commit(self, scope: S) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def _rollback(self, scope: S) -> None:
        raise NotImplementedError

    def _close(self, scope: S) -> None:
        """트랜잭션 스코프의 리소스를 반환합니다."""
        return
