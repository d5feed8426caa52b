# helpdesk/core/deps.py
"""Dependencies shared by the routers."""

import jwt
from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.core.config import Settings
from helpdesk.core.database import get_db
from helpdesk.core.errors import AuthenticationFailed, Forbidden
from helpdesk.core.logging_config import logger
from helpdesk.core.security import decode_access_token
from helpdesk.notification.dispatcher import Notifier
from helpdesk.user.models import User

bearer = HTTPBearer(scheme_name="Bearer", auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_access(request: Request) -> AccessControl:
    return request.app.state.access


def get_attachment_store(request: Request) -> AttachmentStore:
    return request.app.state.attachments


def get_notifier(request: Request, background_tasks: BackgroundTasks) -> Notifier:
    return Notifier(request.app.state.dispatcher, background_tasks)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolves the user behind a bearer token.

    The role used for authorization is read from the stored record, so a
    role change or deactivation applies to tokens issued earlier.
    """
    if credentials is None:
        raise AuthenticationFailed("Authentication required")
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed("Token has expired.") from None
    except jwt.InvalidTokenError as e:
        raise AuthenticationFailed("Invalid token") from e

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed subject in token: {payload.get('sub')!r}")
        raise AuthenticationFailed("Invalid authentication token") from e

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationFailed("Invalid authentication token")
    return user


def get_active_user(
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """Like get_current_user, but refuses users that still have to replace their password."""
    if settings.ENFORCE_PASSWORD_CHANGE and user.force_password_change:
        raise Forbidden("Password change required")
    return user


def get_actor(user: User = Depends(get_active_user)) -> Actor:
    return Actor.from_user(user)


def require(action: Action):
    """Dependency factory for endpoints whose permission depends on role alone."""

    def dependency(
        actor: Actor = Depends(get_actor),
        access: AccessControl = Depends(get_access),
    ) -> Actor:
        access.authorize(actor, action)
        return actor

    return dependency
