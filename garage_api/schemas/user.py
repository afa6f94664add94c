from datetime import datetime

from pydantic import BaseModel, EmailStr

from garage_api.db.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    role: UserRole
    first_name: str | None
    last_name: str | None
    phone: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    email: str
    first_name: str | None
    last_name: str | None

    model_config = {"from_attributes": True}
