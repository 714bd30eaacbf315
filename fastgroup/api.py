"""FastAPI 로 구현한 RESTful 서비스 앱.

라우트는 요청을 서비스 호출로 바꾸고 결과를 직렬화할 뿐, 비즈니스 로직을 갖지 않습니다.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from fastgroup.config import get_config
from fastgroup.core import (
    FastGroupError,
    InvalidEntity,
    NotFound,
    ReferenceViolation,
    TransactionFailure,
    UniqueConstraintViolation,
)
from fastgroup.schema import (
    AddUsersToGroupSchema,
    GroupCreateSchema,
    GroupSchema,
    GroupUpdateSchema,
    GroupWithUsersResult,
    GroupWithUsersSchema,
    UserCreateSchema,
    UserSchema,
    UserUpdateSchema,
    UserWithGroupSchema,
    UserWithGroupsResult,
)
from fastgroup.services import Services, build_services

# globals
app: FastAPI = FastAPI(title="FastGroup")

_services: Optional[Services] = None

ERROR_STATUS = {
    NotFound: 404,
    UniqueConstraintViolation: 409,
    ReferenceViolation: 422,
    InvalidEntity: 422,
    TransactionFailure: 503,
}


def get_services() -> Services:
    """설정에 따라 서비스를 한 번만 생성해서 재사용합니다.

    테스트에서는 ``app.dependency_overrides[get_services]`` 로 교체합니다.
    """
    global _services

    if not _services:
        _services = build_services(get_config().uow)

    return _services


@app.exception_handler(FastGroupError)
async def handle_fastgroup_error(request: Request, e: FastGroupError):
    status = next(
        (code for etype, code in ERROR_STATUS.items() if isinstance(e, etype)), 500
    )
    return JSONResponse(status_code=status, content={"detail": e.message})


def _user_out(user) -> UserSchema:
    return UserSchema.model_validate(user)


def _group_out(group) -> GroupSchema:
    return GroupSchema.model_validate(group)


# users


@app.post("/users", status_code=201, response_model=UserSchema)
def create_user(req: UserCreateSchema, services: Services = Depends(get_services)):
    """``POST /users`` 요청을 처리하여 새로운 사용자를 추가합니다."""
    return _user_out(services.aggregate.create_user(req.name, req.email))


@app.get("/users", response_model=list[UserSchema])
def list_users(services: Services = Depends(get_services)):
    return [_user_out(u) for u in services.users.list_users()]


@app.post("/users/with-group", status_code=201, response_model=UserSchema)
def create_user_with_group(
    req: UserWithGroupSchema, services: Services = Depends(get_services)
):
    """새 사용자를 만들어 기존 그룹에 추가합니다."""
    user = services.aggregate.create_user_with_group(
        req.user.to_new_user(), req.group_id
    )
    return _user_out(user)


@app.post("/users/add-to-group", status_code=201, response_model=list[UserSchema])
def add_users_to_group(
    req: AddUsersToGroupSchema, services: Services = Depends(get_services)
):
    users = services.aggregate.add_users_to_group(
        req.group_id, [u.to_new_user() for u in req.users]
    )
    return [_user_out(u) for u in users]


@app.get("/users/{id}", response_model=UserSchema)
def get_user(id: str, services: Services = Depends(get_services)):
    user = services.users.find_user_by_id(id)
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {id} not found")
    return _user_out(user)


@app.get("/users/{id}/groups", response_model=UserWithGroupsResult)
def get_user_with_groups(id: str, services: Services = Depends(get_services)):
    user, groups = services.aggregate.get_user_with_groups(id)
    return UserWithGroupsResult(
        user=_user_out(user), groups=[_group_out(g) for g in groups]
    )


@app.put("/users/{id}", response_model=UserSchema)
def update_user(
    id: str, req: UserUpdateSchema, services: Services = Depends(get_services)
):
    return _user_out(services.aggregate.update_user(id, req.name, req.email))


@app.delete("/users/{id}", status_code=204)
def delete_user(id: str, services: Services = Depends(get_services)):
    services.aggregate.delete_user(id)


# groups


@app.post("/groups", status_code=201, response_model=GroupSchema)
def create_group(req: GroupCreateSchema, services: Services = Depends(get_services)):
    return _group_out(services.aggregate.create_group(req.name))


@app.get("/groups", response_model=list[GroupSchema])
def list_groups(services: Services = Depends(get_services)):
    return [_group_out(g) for g in services.groups.list_groups()]


@app.post("/groups/with-users", status_code=201, response_model=GroupWithUsersResult)
def create_group_with_users(
    req: GroupWithUsersSchema, services: Services = Depends(get_services)
):
    """그룹과 사용자들을 한 트랜잭션에서 생성합니다."""
    group, users = services.aggregate.create_group_with_users(
        req.group.name, [u.to_new_user() for u in req.users]
    )
    return GroupWithUsersResult(
        group=_group_out(group), users=[_user_out(u) for u in users]
    )


@app.get("/groups/{id}", response_model=GroupSchema)
def get_group(id: str, services: Services = Depends(get_services)):
    group = services.groups.find_group_by_id(id)
    if not group:
        raise HTTPException(status_code=404, detail=f"Group with id {id} not found")
    return _group_out(group)


@app.get("/groups/{id}/users", response_model=GroupWithUsersResult)
def get_group_with_users(id: str, services: Services = Depends(get_services)):
    group, users = services.aggregate.get_group_with_users(id)
    return GroupWithUsersResult(
        group=_group_out(group), users=[_user_out(u) for u in users]
    )


@app.put("/groups/{id}", response_model=GroupSchema)
def update_group(
    id: str, req: GroupUpdateSchema, services: Services = Depends(get_services)
):
    return _group_out(services.aggregate.update_group(id, req.name))


@app.delete("/groups/{id}", status_code=204)
def delete_group(id: str, services: Services = Depends(get_services)):
    services.aggregate.delete_group(id)


@app.delete("/groups/{id}/with-users", status_code=204)
def delete_group_with_users(id: str, services: Services = Depends(get_services)):
    """그룹과 그룹 구성원을 함께 삭제합니다."""
    services.aggregate.delete_group_with_users(id)
