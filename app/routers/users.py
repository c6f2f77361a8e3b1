from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from starlette.concurrency import run_in_threadpool

from app.core.security import Identity, get_current_identity
from app.dependencies import get_notifier, get_user_service
from app.schemas.user import (
    LoginResponse,
    UserCreate,
    UserDeleted,
    UserDetail,
    UserLogin,
    UserRead,
    UserUpdate,
)
from app.services.notifications import NotificationService
from app.services.users import UserService

router = APIRouter(prefix="/user", tags=["users"])


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    service: UserService = Depends(get_user_service),
    notifier: NotificationService = Depends(get_notifier),
):
    user = await run_in_threadpool(service.create, user_in)
    # not awaited: a failed email never fails the registration
    notifier.schedule_welcome(user.name, user.email)
    return user


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: UserLogin,
    service: UserService = Depends(get_user_service),
):
    return service.authenticate(credentials.email, credentials.password)


@router.get("", response_model=List[UserRead])
def list_users(
    service: UserService = Depends(get_user_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.list()


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.get(user_id)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: UUID,
    user_in: UserUpdate,
    service: UserService = Depends(get_user_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.update(user_id, user_in, identity)


@router.delete("/{user_id}", response_model=UserDeleted)
def delete_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.delete(user_id, identity)
