"""API 요청/응답 스키마 모듈입니다."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fastgroup.services import NewUser


class UserCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)

    def to_new_user(self) -> NewUser:
        return NewUser(self.name, self.email)


class UserUpdateSchema(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=1, max_length=255)


class GroupCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class GroupUpdateSchema(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class UserWithGroupSchema(BaseModel):
    """``POST /users/with-group`` 요청."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserCreateSchema
    group_id: str = Field(alias="groupId")


class GroupWithUsersSchema(BaseModel):
    """``POST /groups/with-users`` 요청."""

    group: GroupCreateSchema
    users: list[UserCreateSchema] = []


class AddUsersToGroupSchema(BaseModel):
    """``POST /users/add-to-group`` 요청."""

    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId")
    users: list[UserCreateSchema]


class UserSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


class GroupSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class GroupWithUsersResult(BaseModel):
    group: GroupSchema
    users: list[UserSchema]


class UserWithGroupsResult(BaseModel):
    user: UserSchema
    groups: list[GroupSchema]
