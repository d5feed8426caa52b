# helpdesk/auth/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.auth import services as auth_service
from helpdesk.auth.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageOut,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UsernameAvailability,
    VerifyEmailRequest,
)
from helpdesk.core.config import Settings
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_app_settings, get_current_user, get_notifier
from helpdesk.notification.dispatcher import Notifier
from helpdesk.user import services as user_service
from helpdesk.user.models import User
from helpdesk.user.schemas import PasswordChange, UserOut

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user, token = auth_service.login(db, settings, payload.login, payload.password)
    return LoginResponse(
        token=token,
        user=UserOut.model_validate(user),
        force_password_change=bool(user.force_password_change),
    )


# reachable while a password change is pending
@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.post("/change-password", response_model=MessageOut)
def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.change_password(db, user, payload.current_password, payload.new_password)
    return MessageOut(message="Password changed successfully")


@router.get("/check-username/{username}", response_model=UsernameAvailability)
def check_username(username: str, db: Session = Depends(get_db)):
    return UsernameAvailability(available=auth_service.check_username(db, username))


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
):
    user, temp_password = auth_service.register(db, settings, notifier, payload)
    return RegisterResponse(
        message=auth_service.REGISTERED_MESSAGE,
        user=UserOut.model_validate(user),
        temp_password=temp_password,
    )


@router.post("/verify-email", response_model=MessageOut)
def verify_email(payload: VerifyEmailRequest, db: Session = Depends(get_db)):
    auth_service.verify_email(db, payload.email, payload.verification_code)
    return MessageOut(message="Email verified successfully")


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
):
    return MessageOut(message=auth_service.forgot_password(db, settings, notifier, payload.login_value))


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, payload.email, payload.reset_code, payload.new_password)
    return MessageOut(message="Password reset successful")
