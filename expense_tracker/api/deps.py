"""Request-scoped dependencies: settings, the authenticated caller, and validated inputs."""
from typing import Optional, Type, TypeVar

from fastapi import Depends, Form, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from expense_tracker.api.schemas import AuditFilters, ExpenseFilters, ExpenseForm
from expense_tracker.config import Settings
from expense_tracker.database import get_db
from expense_tracker.errors import Forbidden, TooManyRequests, Unauthenticated
from expense_tracker.models.domain import User
from expense_tracker.services.auth_service import AuthService
from expense_tracker.services.receipts import ReceiptStorage

ModelT = TypeVar("ModelT", bound=BaseModel)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def rate_limit(request: Request) -> None:
    """Applied to every /api route, before authentication."""
    limiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "unknown"
    if not limiter.hit(client):
        raise TooManyRequests(limiter.retry_after(client))


def get_receipt_storage(settings: Settings = Depends(get_settings)) -> ReceiptStorage:
    return ReceiptStorage(settings.upload_dir, settings.max_file_size)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Resolve the caller from the bearer token.

    Runs before every protected route. The role is read from the current
    user row, never trusted from the token.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return AuthService(db, settings).resolve(credentials.credentials)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user


def parse_model(model: Type[ModelT], **data) -> ModelT:
    """Build a model from raw form/query values, reporting problems as request validation errors."""
    try:
        return model(**{key: value for key, value in data.items() if value is not None and value != ""})
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors())


def expense_form(
    amount: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    version: Optional[str] = Form(None),
) -> ExpenseForm:
    return parse_model(ExpenseForm, amount=amount, category=category, date=date, notes=notes, version=version)


def expense_filters(
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> ExpenseFilters:
    return parse_model(
        ExpenseFilters,
        category=category,
        status=status,
        startDate=start_date,
        endDate=end_date,
        page=page,
        limit=limit,
    )


def audit_filters(
    action: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> AuditFilters:
    return parse_model(
        AuditFilters,
        action=action,
        userId=user_id,
        startDate=start_date,
        endDate=end_date,
        page=page,
        limit=limit,
    )
