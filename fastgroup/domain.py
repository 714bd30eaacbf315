"""도메인 모델."""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field

from fastgroup.core.errors import InvalidEntity


def new_id() -> str:
    """시간 순서로 정렬되는 UUIDv7 문자열을 생성합니다.

    상위 48비트는 밀리초 단위 유닉스 타임스탬프, 나머지는 임의의 값입니다.
    """
    millis = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")
    value = (millis & 0xFFFF_FFFF_FFFF) << 80 | rand
    value &= ~(0xF << 76)
    value |= 0x7 << 76  # version
    value &= ~(0x3 << 62)
    value |= 0x2 << 62  # RFC 4122 variant
    return str(uuid.UUID(int=value))


def _check_name(entity: str, name: str) -> None:
    if not name or not name.strip():
        raise InvalidEntity(f"{entity} name must not be empty")


@dataclass
class User:
    """그룹에 소속될 수 있는 사용자 모델입니다."""

    name: str
    email: str
    id: str = field(default_factory=new_id)  # pylint: disable=invalid-name

    def __post_init__(self) -> None:
        _check_name("User", self.name)


@dataclass
class Group:
    """여러 :class:`User` 를 묶는 그룹 모델입니다.

    :attr:`name` 은 모든 그룹 사이에서 유일해야 합니다.
    """

    name: str
    id: str = field(default_factory=new_id)  # pylint: disable=invalid-name

    def __post_init__(self) -> None:
        _check_name("Group", self.name)
