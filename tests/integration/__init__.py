from sqlalchemy import text
from sqlalchemy.orm import Session


def insert_user(session: Session, id: str, name: str, email: str) -> None:
    session.execute(
        text('INSERT INTO "user" (id, name, email) VALUES (:id, :name, :email)'),
        dict(id=id, name=name, email=email),
    )
    session.commit()


def insert_group(session: Session, id: str, name: str) -> None:
    session.execute(
        text('INSERT INTO "group" (id, name) VALUES (:id, :name)'),
        dict(id=id, name=name),
    )
    session.commit()


def insert_membership(session: Session, user_id: str, group_id: str) -> None:
    session.execute(
        text('INSERT INTO user_groups ("userId", "groupId") VALUES (:uid, :gid)'),
        dict(uid=user_id, gid=group_id),
    )
    session.commit()


def count_rows(session: Session, table: str) -> int:
    [[count]] = session.execute(text(f'SELECT count(*) FROM "{table}"'))
    return count


def memberships(session: Session) -> set[tuple[str, str]]:
    rows = session.execute(text('SELECT "userId", "groupId" FROM user_groups'))
    return {(user_id, group_id) for user_id, group_id in rows}


def delete_row(session: Session, table: str, id: str) -> None:
    session.execute(text(f'DELETE FROM "{table}" WHERE id = :id'), dict(id=id))
    session.commit()
