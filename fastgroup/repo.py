"""레포지터리 패턴 구현."""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fastgroup.core import (
    AbstractRepository,
    FastGroupError,
    GroupRepository,
    ReferenceViolation,
    UniqueConstraintViolation,
    UserRepository,
)
from fastgroup.domain import Group, User
from fastgroup.orm import group_table, user_groups_table, user_table

E = TypeVar("E", User, Group)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def translate_integrity_error(e: IntegrityError) -> FastGroupError:
    """DB 드라이버의 무결성 에러를 구분 가능한 도메인 에러로 바꿉니다.

    PostgreSQL 드라이버는 SQLSTATE 코드를, SQLite 는 에러 메세지를 보고 판단합니다.
    어느 쪽으로도 판단할 수 없으면 원래 에러를 다시 발생시킵니다.
    """
    orig = e.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig)

    if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return UniqueConstraintViolation(text)
    if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return ReferenceViolation(text)

    raise e


class SqlAlchemyRepository(AbstractRepository[E]):
    """SqlAlchemy Core 구문으로 테이블 하나를 다루는 :class:`AbstractRepository` 구현입니다.

    모든 구문은 생성자에 전달된 ``session`` 의 트랜잭션 안에서 실행됩니다.
    """

    entity_class: Type[E]
    table: Table

    def __init__(self, session: Session):
        super().__init__()
        self.session = session

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}[{self.table.name}]"

    def _execute(self, stmt: Any) -> Any:
        try:
            return self.session.execute(stmt)
        except IntegrityError as e:
            raise translate_integrity_error(e) from e

    def _to_entity(self, row: Any) -> E:
        return self.entity_class(**row._mapping)

    def create(self, item: E) -> None:
        self._execute(insert(self.table).values(**asdict(item)))

    def list(self) -> list[E]:
        rows = self._execute(select(self.table))
        return [self._to_entity(row) for row in rows]

    def find_by_id(self, id: str) -> Optional[E]:  # pylint: disable=redefined-builtin
        row = self._execute(select(self.table).where(self.table.c.id == id)).first()
        return self._to_entity(row) if row else None

    def update(self, item: E) -> None:
        values = {k: v for k, v in asdict(item).items() if k != "id"}
        self._execute(
            update(self.table).where(self.table.c.id == item.id).values(**values)
        )

    def delete_by_id(self, id: str) -> None:  # pylint: disable=redefined-builtin
        self._execute(delete(self.table).where(self.table.c.id == id))


class SqlAlchemyUserRepository(SqlAlchemyRepository[User], UserRepository):
    entity_class = User
    table = user_table

    def add_to_group(self, user_id: str, group_id: str) -> None:
        self._execute(
            insert(user_groups_table).values(userId=user_id, groupId=group_id)
        )

    def remove_from_group(self, user_id: str, group_id: str) -> None:
        self._execute(
            delete(user_groups_table).where(
                and_(
                    user_groups_table.c.userId == user_id,
                    user_groups_table.c.groupId == group_id,
                )
            )
        )

    def users_in_group(self, group_id: str) -> list[User]:
        rows = self._execute(
            select(user_table)
            .join(user_groups_table, user_table.c.id == user_groups_table.c.userId)
            .where(user_groups_table.c.groupId == group_id)
        )
        return [self._to_entity(row) for row in rows]

    def group_ids_for_user(self, user_id: str) -> list[str]:
        rows = self._execute(
            select(user_groups_table.c.groupId).where(
                user_groups_table.c.userId == user_id
            )
        )
        return [group_id for (group_id,) in rows]


class SqlAlchemyGroupRepository(SqlAlchemyRepository[Group], GroupRepository):
    entity_class = Group
    table = group_table

    def groups_for_user(self, user_id: str) -> list[Group]:
        rows = self._execute(
            select(group_table)
            .join(user_groups_table, group_table.c.id == user_groups_table.c.groupId)
            .where(user_groups_table.c.userId == user_id)
        )
        return [self._to_entity(row) for row in rows]
