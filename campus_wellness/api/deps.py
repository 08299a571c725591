from dataclasses import dataclass
from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_wellness.core.security import subject_user_id
from campus_wellness.db.models.user import User, UserRole
from campus_wellness.db.session import get_db
from campus_wellness.services.chat_service import ChatOrchestrator, build_chat_orchestrator
from campus_wellness.services.notification_service import Notifier, build_notifier

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

LimitParam = Annotated[int, Query(ge=1, le=100)]
OffsetParam = Annotated[int, Query(ge=0)]


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = subject_user_id(token)
    except ValueError:
        raise unauthorized_exc from None

    user = db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise unauthorized_exc
    return user


def require_roles(*roles: UserRole | str) -> Callable[[User], User]:
    allowed_roles = {role.value if isinstance(role, UserRole) else role for role in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return checker


def get_notifier() -> Notifier:
    return build_notifier()


def get_chat_orchestrator() -> ChatOrchestrator:
    return build_chat_orchestrator()


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and where their notifications go."""

    user: User
    notifier: Notifier


def get_request_context(
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> RequestContext:
    return RequestContext(user=current_user, notifier=notifier)
