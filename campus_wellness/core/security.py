from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from campus_wellness.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, role: str, email: str, expires_minutes: int | None = None) -> str:
    lifetime = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "email": email,
        "exp": datetime.now(UTC) + timedelta(minutes=lifetime),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def subject_user_id(token: str) -> int:
    """Return the user id carried in a bearer token, raising ValueError when it is unusable."""
    payload = decode_access_token(token)
    try:
        return int(payload.get("sub", ""))
    except (TypeError, ValueError):
        raise ValueError("Token subject is not a user id") from None
