from pydantic import BaseModel, EmailStr, Field, field_validator

from campus_wellness.db.models.user import UserRole


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RegisterRequest(Credentials):
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.CLIENT


class LoginRequest(Credentials):
    pass


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
