# helpdesk/user/schemas.py
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from helpdesk.user.models import Role

USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"


class UserSummary(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    role: Role

    model_config = {"from_attributes": True}


class UserOut(UserSummary):
    email: str
    is_active: bool
    email_verified: bool
    force_password_change: bool
    created_at: datetime
    last_login: datetime | None = None


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: str | None = None
    last_name: str | None = None
    role: Role = Role.CUSTOMER


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: Role | None = None
    is_active: bool | None = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class AdminPasswordReset(BaseModel):
    password: str = Field(..., min_length=1)


class EmailVerifiedUpdate(BaseModel):
    email_verified: bool
