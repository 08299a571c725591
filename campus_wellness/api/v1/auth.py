from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from campus_wellness.core.config import settings
from campus_wellness.core.rate_limiter import enforce_rate_limit
from campus_wellness.db.session import get_db
from campus_wellness.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from campus_wellness.schemas.user import UserResponse
from campus_wellness.services.auth_service import login_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> UserResponse:
    enforce_rate_limit(
        scope="register",
        request=request,
        limit=settings.auth_register_max_attempts,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    user = register_user(payload=payload, db=db)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> TokenResponse:
    enforce_rate_limit(
        scope="login",
        request=request,
        limit=settings.auth_login_max_attempts,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    return login_user(payload=payload, db=db)
