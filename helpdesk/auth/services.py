# helpdesk/auth/services.py
"""Account lifecycle: login, registration, email verification and password recovery."""

import re
from datetime import timedelta

from sqlalchemy.orm import Session

from helpdesk.auth import tokens
from helpdesk.auth.models import TokenPurpose
from helpdesk.auth.password_policy import validate_password
from helpdesk.auth.schemas import RegisterRequest
from helpdesk.auth.tokens import TokenCheck
from helpdesk.core.config import Settings
from helpdesk.core.errors import AuthenticationFailed, Forbidden, TokenExpired, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.core.security import create_access_token, generate_temporary_password, verify_password
from helpdesk.notification import messages
from helpdesk.notification.dispatcher import Notifier
from helpdesk.setting import services as setting_service
from helpdesk.user import services as user_service
from helpdesk.user.models import Role, User

USERNAME_MIN_LENGTH = 3
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

FORGOT_PASSWORD_MESSAGE = (
    "If the username or email address is registered, you will receive an email to reset your password"
)
REGISTERED_MESSAGE = (
    "Registration successful. Please check your email for verification code and temporary password."
)


def validate_username(username: str) -> None:
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationFailed(f"Username must be at least {USERNAME_MIN_LENGTH} characters long")
    if not USERNAME_RE.match(username):
        raise ValidationFailed("Username can only contain letters, numbers, underscores, and hyphens")


def login(db: Session, settings: Settings, login_value: str, password: str) -> tuple[User, str]:
    user = user_service.get_by_login(db, login_value)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthenticationFailed("Invalid username or password")
    if not user.is_active:
        raise AuthenticationFailed("Account is inactive")

    user_service.record_login(db, user)
    token = create_access_token(user.id, user.role.value, settings)
    logger.info(f"User logged in: {user.username}")
    return user, token


def check_username(db: Session, username: str) -> bool:
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationFailed(f"Username must be at least {USERNAME_MIN_LENGTH} characters long")
    return not user_service.username_taken(db, username)


def _email_domain_allowed(db: Session, email: str) -> bool:
    allowed = setting_service.get_list(db, "allowed_email_domains")
    if not allowed:
        return True
    domain = email.rsplit("@", 1)[-1].lower()
    return domain in {d.lower() for d in allowed}


def register(db: Session, settings: Settings, notifier: Notifier, payload: RegisterRequest) -> tuple[User, str]:
    """
    Self-service signup for customers.

    The account gets a random temporary password (returned once and emailed
    together with a verification code) and must change it on first login.
    """
    validate_username(payload.username)
    if not setting_service.get_bool(db, "registration_enabled"):
        raise Forbidden("Registration is currently disabled")
    email = str(payload.email)
    if not _email_domain_allowed(db, email):
        raise Forbidden("Email domain not allowed for registration")

    temp_password = generate_temporary_password()
    user = user_service.insert_user(
        db,
        username=payload.username,
        email=email,
        password=temp_password,
        role=Role.CUSTOMER,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email_verified=False,
        force_password_change=True,
    )
    ttl_hours = settings.VERIFICATION_TOKEN_TTL_HOURS
    token = tokens.issue(db, TokenPurpose.VERIFY_EMAIL, user.id, timedelta(hours=ttl_hours))
    user_service.commit_unique(db)
    db.refresh(user)

    notifier.send(messages.email_verification(user.email, token.code, ttl_hours, temp_password))
    logger.info(f"New user registered: {user.username}")
    return user, temp_password


def verify_email(db: Session, email: str, code: str) -> None:
    """
    Marks the address verified when the code matches.

    The stored expiry is not checked on this path, unlike password reset.
    """
    user = user_service.get_by_email(db, email)
    if user is None:
        raise ValidationFailed("Invalid verification code")
    result = tokens.take_if_valid(db, TokenPurpose.VERIFY_EMAIL, user.id, code, check_expiry=False)
    if result is not TokenCheck.VALID:
        raise ValidationFailed("Invalid verification code")

    user.email_verified = True
    db.commit()
    logger.info(f"Email verified for user: {user.username}")


def forgot_password(db: Session, settings: Settings, notifier: Notifier, login_value: str) -> str:
    """Same answer whether or not the account exists; only real accounts get a code."""
    user = user_service.get_by_login(db, login_value)
    if user is None:
        return FORGOT_PASSWORD_MESSAGE

    ttl_minutes = settings.RESET_TOKEN_TTL_MINUTES
    token = tokens.issue(db, TokenPurpose.RESET_PASSWORD, user.id, timedelta(minutes=ttl_minutes))
    db.commit()
    notifier.send(messages.password_reset(user.email, token.code, ttl_minutes))
    logger.info(f"Password reset requested for user: {user.username}")
    return FORGOT_PASSWORD_MESSAGE


def reset_password(db: Session, email: str, code: str, new_password: str) -> None:
    check = validate_password(new_password)
    if not check.is_valid:
        raise ValidationFailed(". ".join(check.errors), errors=check.errors)

    user = user_service.get_by_email(db, email)
    if user is None:
        raise ValidationFailed("Invalid reset code or email")

    result = tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user.id, code)
    if result is TokenCheck.INVALID:
        raise ValidationFailed("Invalid reset code or email")
    if result is TokenCheck.EXPIRED:
        # keep the deletion of the stale code
        db.commit()
        raise TokenExpired("Reset code has expired")

    user_service.set_password(db, user, new_password)
    db.commit()
    logger.info(f"Password reset successful for user: {user.username}")
