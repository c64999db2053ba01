"""Authentication endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from expense_tracker.api.deps import get_current_user, get_settings
from expense_tracker.api.schemas import ErrorResponse, LoginRequest, LoginResponse, MeResponse, MessageResponse
from expense_tracker.config import Settings
from expense_tracker.database import get_db
from expense_tracker.models.domain import User
from expense_tracker.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
def login(credentials: LoginRequest, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Exchange email and password for a bearer token."""
    user, token = AuthService(db, settings).authenticate(credentials.email, credentials.password)
    return {"message": "Login successful", "user": user, "token": token}


@router.post("/logout", response_model=MessageResponse)
def logout(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Record the logout. The token stays valid until it expires; the client must discard it."""
    AuthService(db, settings).logout(user)
    return {"message": "Logout successful"}


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {"user": user}
