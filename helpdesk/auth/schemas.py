# helpdesk/auth/schemas.py
from pydantic import BaseModel, EmailStr, Field

from helpdesk.user.schemas import UserOut


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="Username or email address")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserOut
    force_password_change: bool


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    email: EmailStr


class RegisterResponse(BaseModel):
    message: str
    user: UserOut
    temp_password: str


class UsernameAvailability(BaseModel):
    available: bool


class VerifyEmailRequest(BaseModel):
    email: str = Field(..., min_length=1)
    verification_code: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    login_value: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)
    reset_code: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    message: str
