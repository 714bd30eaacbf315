"""User/Group 서비스 레이어.

모든 공개 메소드는 하나의 :meth:`AbstractUnitOfWork.execute` 호출 안에서 실행되므로
여러 레포지터리에 걸친 작업도 전부 커밋되거나 전부 롤백됩니다.
HTTP 라우트나 CLI 같은 표현 계층은 이 모듈의 서비스만 호출합니다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence, TypeVar

from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fastgroup.core import (
    AbstractUnitOfWork,
    NestedTransaction,
    NotFound,
    RepositoryContext,
    TransactionFailure,
)
from fastgroup.domain import Group, User, new_id
from fastgroup.logging import get_logger

T = TypeVar("T")

logger = get_logger("fastgroup.services")


@dataclass
class NewUser:
    """생성할 사용자 정보."""

    name: str
    email: str


def _get_user(ctx: RepositoryContext, user_id: str) -> User:
    user = ctx.users.find_by_id(user_id)
    if not user:
        logger.info("user not found: %r", user_id)
        raise NotFound(f"User with id {user_id} not found")
    return user


def _get_group(ctx: RepositoryContext, group_id: str) -> Group:
    group = ctx.groups.find_by_id(group_id)
    if not group:
        logger.info("group not found: %r", group_id)
        raise NotFound(f"Group with id {group_id} not found")
    return group


def _create_members(
    ctx: RepositoryContext, group_id: str, users: Sequence[NewUser]
) -> list[User]:
    """사용자들을 순서대로 만들고 그룹에 추가합니다."""
    created = list[User]()
    for data in users:
        user = User(data.name, data.email, id=new_id())
        ctx.users.create(user)
        ctx.users.add_to_group(user.id, group_id)
        created.append(user)
    return created


class UnitOfWorkService:
    """UoW 를 주입받는 서비스의 기본 클래스.

    Params:
        - uow: 트랜잭션 경계를 제공하는 UnitOfWork.
        - max_attempts: :class:`TransactionFailure` 발생시 전체 작업을 다시 시도할
          최대 횟수. 기본값 1 은 재시도하지 않음을 뜻합니다.
    """

    def __init__(self, uow: AbstractUnitOfWork, max_attempts: int = 1):
        self.uow = uow
        self.max_attempts = max_attempts

    def _execute(self, work: Callable[[RepositoryContext], T]) -> T:
        if self.max_attempts <= 1:
            return self.uow.execute(work)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.1, max=2),
            retry=retry_if_exception_type(TransactionFailure)
            & retry_if_not_exception_type(NestedTransaction),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "retrying transaction (attempt %d/%d)",
                        attempt.retry_state.attempt_number,
                        self.max_attempts,
                    )
                result = self.uow.execute(work)
        return result


class UserAggregateService(UnitOfWorkService):
    """User 와 Group 에 걸친 유스케이스를 구현합니다."""

    def create_user(self, name: str, email: str) -> User:
        def work(ctx: RepositoryContext) -> User:
            user = User(name, email, id=new_id())
            ctx.users.create(user)
            return user

        return self._execute(work)

    def update_user(
        self,
        id: str,  # pylint: disable=redefined-builtin
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """주어진 필드만 바꾼 사용자로 전체 교체합니다.

        Raises:
            NotFound: 사용자가 없을 경우.
        """

        def work(ctx: RepositoryContext) -> User:
            existing = _get_user(ctx, id)
            user = User(
                name if name is not None else existing.name,
                email if email is not None else existing.email,
                id=existing.id,
            )
            ctx.users.update(user)
            return user

        return self._execute(work)

    def delete_user(self, id: str) -> None:  # pylint: disable=redefined-builtin
        def work(ctx: RepositoryContext) -> None:
            _get_user(ctx, id)
            ctx.users.delete_by_id(id)

        self._execute(work)

    def create_group(self, name: str) -> Group:
        def work(ctx: RepositoryContext) -> Group:
            group = Group(name, id=new_id())
            ctx.groups.create(group)
            return group

        return self._execute(work)

    def update_group(
        self, id: str, name: Optional[str] = None  # pylint: disable=redefined-builtin
    ) -> Group:
        def work(ctx: RepositoryContext) -> Group:
            existing = _get_group(ctx, id)
            group = Group(name if name is not None else existing.name, id=existing.id)
            ctx.groups.update(group)
            return group

        return self._execute(work)

    def delete_group(self, id: str) -> None:  # pylint: disable=redefined-builtin
        def work(ctx: RepositoryContext) -> None:
            _get_group(ctx, id)
            ctx.groups.delete_by_id(id)

        self._execute(work)

    def create_user_with_group(self, user: NewUser, group_id: str) -> User:
        """새 사용자를 만들어 기존 그룹에 추가합니다.

        그룹 조회는 같은 트랜잭션 안에서 하며, 그룹이 없으면 아무것도 쓰기 전에
        :class:`NotFound` 를 발생시킵니다.
        """

        def work(ctx: RepositoryContext) -> User:
            _get_group(ctx, group_id)
            [created] = _create_members(ctx, group_id, [user])
            return created

        return self._execute(work)

    def create_group_with_users(
        self, name: str, users: Sequence[NewUser]
    ) -> tuple[Group, list[User]]:
        """그룹을 만들고 사용자들을 생성해서 추가합니다. 전부 성공하거나 전부 실패합니다."""

        def work(ctx: RepositoryContext) -> tuple[Group, list[User]]:
            group = Group(name, id=new_id())
            ctx.groups.create(group)
            return group, _create_members(ctx, group.id, users)

        return self._execute(work)

    def add_users_to_group(self, group_id: str, users: Sequence[NewUser]) -> list[User]:
        def work(ctx: RepositoryContext) -> list[User]:
            _get_group(ctx, group_id)
            return _create_members(ctx, group_id, users)

        return self._execute(work)

    def delete_group_with_users(
        self, group_id: str, scope: Literal["members", "all"] = "members"
    ) -> None:
        """그룹과 그룹 구성원을 함께 삭제합니다.

        ``scope="all"`` 은 그룹과 관계없이 저장소의 *모든* 사용자를 지우던 이전 동작입니다.
        기본값은 그룹 구성원만 삭제합니다.

        Raises:
            ValueError: ``scope`` 가 ``"members"`` 나 ``"all"`` 이 아닐 경우.
        """
        if scope not in ("members", "all"):
            raise ValueError(f"unknown scope: {scope!r}")

        def work(ctx: RepositoryContext) -> None:
            _get_group(ctx, group_id)
            if scope == "all":
                users = ctx.users.list()
            else:
                users = ctx.users.users_in_group(group_id)

            for user in users:
                ctx.users.delete_by_id(user.id)

            ctx.groups.delete_by_id(group_id)

        self._execute(work)

    def get_group_with_users(self, group_id: str) -> tuple[Group, list[User]]:
        def work(ctx: RepositoryContext) -> tuple[Group, list[User]]:
            return _get_group(ctx, group_id), ctx.users.users_in_group(group_id)

        return self._execute(work)

    def get_user_with_groups(self, user_id: str) -> tuple[User, list[Group]]:
        def work(ctx: RepositoryContext) -> tuple[User, list[Group]]:
            return _get_user(ctx, user_id), ctx.groups.groups_for_user(user_id)

        return self._execute(work)


class UserQueryService(UnitOfWorkService):
    """사용자 조회 서비스. 저장소 상태를 바꾸지 않습니다."""

    def find_user_by_id(self, id: str) -> Optional[User]:  # pylint: disable=redefined-builtin
        return self._execute(lambda ctx: ctx.users.find_by_id(id))

    def list_users(self) -> list[User]:
        return self._execute(lambda ctx: ctx.users.list())


class GroupQueryService(UnitOfWorkService):
    """그룹 조회 서비스. 저장소 상태를 바꾸지 않습니다."""

    def find_group_by_id(self, id: str) -> Optional[Group]:  # pylint: disable=redefined-builtin
        return self._execute(lambda ctx: ctx.groups.find_by_id(id))

    def list_groups(self) -> list[Group]:
        return self._execute(lambda ctx: ctx.groups.list())


@dataclass
class Services:
    """표현 계층이 사용하는 서비스 묶음."""

    aggregate: UserAggregateService
    users: UserQueryService
    groups: GroupQueryService


def build_services(uow: AbstractUnitOfWork, max_attempts: int = 1) -> Services:
    """하나의 UoW 를 공유하는 서비스들을 생성합니다."""
    return Services(
        aggregate=UserAggregateService(uow, max_attempts),
        users=UserQueryService(uow, max_attempts),
        groups=GroupQueryService(uow, max_attempts),
    )
