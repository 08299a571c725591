from datetime import datetime

from pydantic import BaseModel, EmailStr

from campus_wellness.db.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    role: UserRole
    is_active: bool
    consultant_profile_id: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
