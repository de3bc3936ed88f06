from typing import Any

from fastapi import APIRouter, Depends

from transdesk.api.deps import UserServiceDep, get_actor
from transdesk.users import UserCreate, UserPublic, UsersPublic, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=UsersPublic)
def read_users(
    service: UserServiceDep,
    limit: int = 10,
    offset: int = 0,
    keyword: str = "",
) -> Any:
    users, count = service.get_all(limit, offset, keyword)
    return UsersPublic(data=users, count=count)


@router.post("/", response_model=UserPublic, dependencies=[Depends(get_actor)])
def create_user(service: UserServiceDep, user_in: UserCreate) -> Any:
    return service.create(user_in)


@router.get("/{user_id}", response_model=UserPublic)
def read_user(service: UserServiceDep, user_id: int) -> Any:
    return service.get_by_id(user_id)


@router.put("/{user_id}", response_model=UserPublic, dependencies=[Depends(get_actor)])
def update_user(service: UserServiceDep, user_id: int, user_in: UserUpdate) -> Any:
    return service.update(user_id, user_in)
