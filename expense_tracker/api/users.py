"""User administration endpoints. Admin only."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from expense_tracker.api.deps import get_settings, require_admin
from expense_tracker.api.schemas import (
    ErrorResponse,
    MessageResponse,
    UserCreate,
    UserDetail,
    UserEnvelope,
    UserListResponse,
    UserUpdate,
)
from expense_tracker.config import Settings
from expense_tracker.database import get_db
from expense_tracker.models.domain import User
from expense_tracker.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from expense_tracker.services.users import UserService

router = APIRouter()


def _service(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> UserService:
    return UserService(db, settings)


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str = Query(""),
    caller: User = Depends(require_admin),
    service: UserService = Depends(_service),
):
    users, pagination = service.list(caller, page, limit, search)
    return {"users": users, "pagination": pagination}


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED,
             responses={409: {"model": ErrorResponse}})
def create_user(data: UserCreate, caller: User = Depends(require_admin), service: UserService = Depends(_service)):
    user = service.create(caller, **data.model_dump())
    return {"message": "User created successfully", "user": user}


@router.get("/{user_id}", response_model=UserDetail)
def get_user(user_id: str, caller: User = Depends(require_admin), service: UserService = Depends(_service)):
    return {"user": service.get(caller, user_id)}


@router.put("/{user_id}", response_model=UserEnvelope, responses={409: {"model": ErrorResponse}})
def update_user(
    user_id: str,
    data: UserUpdate,
    caller: User = Depends(require_admin),
    service: UserService = Depends(_service),
):
    user = service.update(caller, user_id, **data.model_dump(exclude_none=True))
    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}", response_model=MessageResponse, responses={403: {"model": ErrorResponse}})
def delete_user(user_id: str, caller: User = Depends(require_admin), service: UserService = Depends(_service)):
    """Delete a user and everything they own. Admins cannot delete themselves."""
    service.delete(caller, user_id)
    return {"message": "User deleted successfully"}
