"""서비스 레이어 단위 테스트.

Low Gear(고속 기어) 테스트입니다.
"""
import pytest

from fastgroup.core import (
    NestedTransaction,
    NotFound,
    TransactionFailure,
    UniqueConstraintViolation,
)
from fastgroup.domain import Group, User
from fastgroup.services import (
    GroupQueryService,
    NewUser,
    UnitOfWorkService,
    UserAggregateService,
    UserQueryService,
    build_services,
)
from fastgroup.test.unit import FakeStore, FakeUnitOfWork


class FlakyCommitUnitOfWork(FakeUnitOfWork):
    """처음 ``failures`` 번의 커밋은 실패하는 Fake UoW."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def _commit(self, scope: FakeStore) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError("could not serialize access")
        super()._commit(scope)


@pytest.fixture
def service(fake_uow: FakeUnitOfWork) -> UserAggregateService:
    return UserAggregateService(fake_uow)


def test_create_user(service: UserAggregateService, fake_uow: FakeUnitOfWork):
    user = service.create_user("John Doe", "john@x.com")

    assert fake_uow.store.users == {user.id: user}
    assert fake_uow.committed


def test_create_user_with_duplicate_email(service: UserAggregateService):
    service.create_user("John Doe", "john@x.com")

    with pytest.raises(UniqueConstraintViolation):
        service.create_user("Other", "john@x.com")


def test_update_user_keeps_omitted_fields(service: UserAggregateService):
    user = service.create_user("John Doe", "john@x.com")

    updated = service.update_user(user.id, name="Johnny")

    assert updated == User("Johnny", "john@x.com", id=user.id)
    assert UserQueryService(service.uow).find_user_by_id(user.id) == updated


def test_update_missing_user(service: UserAggregateService):
    with pytest.raises(NotFound, match="User with id missing not found"):
        service.update_user("missing", name="Nobody")


def test_delete_user(service: UserAggregateService, fake_uow: FakeUnitOfWork):
    group = service.create_group("admins")
    user = service.create_user_with_group(NewUser("John Doe", "john@x.com"), group.id)

    service.delete_user(user.id)

    assert fake_uow.store.users == {}
    assert fake_uow.store.memberships == set()

    with pytest.raises(NotFound):
        service.delete_user(user.id)


def test_group_crud(service: UserAggregateService, fake_uow: FakeUnitOfWork):
    group = service.create_group("admins")
    renamed = service.update_group(group.id, name="root")
    assert renamed == Group("root", id=group.id)
    assert service.update_group(group.id) == renamed

    service.delete_group(group.id)
    assert fake_uow.store.groups == {}

    with pytest.raises(NotFound, match=f"Group with id {group.id} not found"):
        service.delete_group(group.id)


def test_create_user_with_missing_group(
    service: UserAggregateService, fake_uow: FakeUnitOfWork
):
    with pytest.raises(NotFound, match="Group with id missing not found"):
        service.create_user_with_group(NewUser("John Doe", "john@x.com"), "missing")

    assert fake_uow.store.users == {}


def test_create_user_with_group(service: UserAggregateService, fake_uow: FakeUnitOfWork):
    group = service.create_group("admins")

    user = service.create_user_with_group(NewUser("John Doe", "john@x.com"), group.id)

    assert fake_uow.store.memberships == {(user.id, group.id)}


def test_create_group_with_users(service: UserAggregateService, fake_uow: FakeUnitOfWork):
    group, users = service.create_group_with_users(
        "G", [NewUser("u1", "u1@x.com"), NewUser("u2", "u2@x.com")]
    )

    assert group.name == "G"
    assert [u.email for u in users] == ["u1@x.com", "u2@x.com"]
    assert fake_uow.store.memberships == {(u.id, group.id) for u in users}


def test_create_group_with_users_is_all_or_nothing(
    service: UserAggregateService, fake_uow: FakeUnitOfWork
):
    service.create_user("Existing", "u2@x.com")

    with pytest.raises(UniqueConstraintViolation):
        service.create_group_with_users(
            "G", [NewUser("u1", "u1@x.com"), NewUser("u2", "u2@x.com")]
        )

    assert fake_uow.store.groups == {}
    assert [u.email for u in fake_uow.store.users.values()] == ["u2@x.com"]
    assert fake_uow.store.memberships == set()


def test_add_users_to_group(service: UserAggregateService):
    group = service.create_group("admins")

    users = service.add_users_to_group(group.id, [NewUser("u1", "u1@x.com")])

    found_group, members = service.get_group_with_users(group.id)
    assert found_group == group
    assert members == users

    with pytest.raises(NotFound):
        service.add_users_to_group("missing", [NewUser("u2", "u2@x.com")])


def test_get_user_with_groups(service: UserAggregateService):
    group = service.create_group("admins")
    user = service.create_user_with_group(NewUser("John Doe", "john@x.com"), group.id)

    assert service.get_user_with_groups(user.id) == (user, [group])

    with pytest.raises(NotFound):
        service.get_user_with_groups("missing")


def test_delete_group_with_users_deletes_only_members(
    service: UserAggregateService, fake_uow: FakeUnitOfWork
):
    group, _ = service.create_group_with_users(
        "G", [NewUser("u1", "u1@x.com"), NewUser("u2", "u2@x.com")]
    )
    outsider = service.create_user("Outsider", "out@x.com")

    service.delete_group_with_users(group.id)

    assert fake_uow.store.groups == {}
    assert list(fake_uow.store.users.values()) == [outsider]


def test_delete_group_with_users_legacy_scope_deletes_everyone(
    service: UserAggregateService, fake_uow: FakeUnitOfWork
):
    group, _ = service.create_group_with_users("G", [NewUser("u1", "u1@x.com")])
    other = service.create_group("other")
    service.create_user("Outsider", "out@x.com")

    service.delete_group_with_users(group.id, scope="all")

    assert fake_uow.store.users == {}
    assert list(fake_uow.store.groups) == [other.id]


def test_delete_group_with_users_rejects_unknown_scope(
    service: UserAggregateService, fake_uow: FakeUnitOfWork
):
    group, _ = service.create_group_with_users("G", [NewUser("u1", "u1@x.com")])

    with pytest.raises(ValueError, match="everyone"):
        service.delete_group_with_users(group.id, scope="everyone")

    assert list(fake_uow.store.groups) == [group.id]
    assert len(fake_uow.store.users) == 1


def test_delete_group_with_users_missing_group(service: UserAggregateService):
    with pytest.raises(NotFound):
        service.delete_group_with_users("missing")


def test_query_services(fake_uow: FakeUnitOfWork):
    services = build_services(fake_uow)
    user = services.aggregate.create_user("John Doe", "john@x.com")
    group = services.aggregate.create_group("admins")

    assert services.users.list_users() == [user]
    assert services.users.find_user_by_id("missing") is None
    assert GroupQueryService(fake_uow).list_groups() == [group]
    assert services.groups.find_group_by_id(group.id) == group


def test_retries_transaction_failures():
    uow = FlakyCommitUnitOfWork(failures=2)
    service = UserAggregateService(uow, max_attempts=3)

    user = service.create_user("John Doe", "john@x.com")

    assert uow.attempts == 3
    assert list(uow.store.users.values()) == [user]


def test_gives_up_after_max_attempts():
    uow = FlakyCommitUnitOfWork(failures=5)
    service = UserAggregateService(uow, max_attempts=2)

    with pytest.raises(TransactionFailure):
        service.create_user("John Doe", "john@x.com")

    assert uow.attempts == 2
    assert uow.store.users == {}


def test_does_not_retry_by_default():
    uow = FlakyCommitUnitOfWork(failures=1)

    with pytest.raises(TransactionFailure):
        UserAggregateService(uow).create_user("John Doe", "john@x.com")

    assert uow.attempts == 1


def test_does_not_retry_domain_errors():
    uow = FlakyCommitUnitOfWork(failures=0)
    service = UserAggregateService(uow, max_attempts=3)

    with pytest.raises(NotFound):
        service.delete_user("missing")

    assert uow.rollbacks == 1


def test_does_not_retry_nested_invocations(fake_uow: FakeUnitOfWork):
    service = UnitOfWorkService(fake_uow, max_attempts=3)
    calls = list[int]()

    def work(ctx):
        calls.append(1)
        fake_uow.execute(lambda inner: None)

    with pytest.raises(NestedTransaction):
        service._execute(work)  # pylint: disable=protected-access

    assert len(calls) == 1
