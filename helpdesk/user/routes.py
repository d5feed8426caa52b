# helpdesk/user/routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor
from helpdesk.auth.schemas import MessageOut
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_access, get_actor, get_current_user, require
from helpdesk.core.errors import ValidationFailed
from helpdesk.user import services as user_service
from helpdesk.user.models import Role, User
from helpdesk.user.schemas import (
    AdminPasswordReset,
    EmailVerifiedUpdate,
    PasswordChange,
    UserCreate,
    UserOut,
    UserUpdate,
)

router = APIRouter(prefix="/users", tags=["Users"])


def _parse_roles(role: str | None) -> list[Role] | None:
    if not role:
        return None
    try:
        return [Role(r.strip()) for r in role.split(",") if r.strip()]
    except ValueError:
        raise ValidationFailed("Invalid role") from None


@router.get("/", response_model=list[UserOut])
def list_users(
    role: str | None = Query(default=None, description="Comma separated roles, e.g. agent,admin"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return user_service.visible_users(db, access, actor, _parse_roles(role))


@router.get("/{user_id}", response_model=UserOut)
def get(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return user_service.read_user(db, access, actor, user_id)


@router.post("/", response_model=UserOut, status_code=201)
def create(
    payload: UserCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.USER_CREATE)),
):
    return user_service.create_user(db, payload, created_by=f"user {actor.id}")


@router.put("/{user_id}", response_model=UserOut)
def update(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return user_service.update_user(db, access, actor, user_id, payload)


# reachable while a password change is pending
@router.put("/{user_id}/password", response_model=MessageOut)
def change_password(
    user_id: int,
    payload: PasswordChange,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessControl = Depends(get_access),
):
    user_service.change_user_password(
        db, access, Actor.from_user(user), user_id, payload.current_password, payload.new_password
    )
    return MessageOut(message="Password changed successfully")


@router.delete("/{user_id}", response_model=MessageOut)
def delete(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.USER_ADMINISTER)),
):
    user_service.delete_user(db, user_id, actor)
    return MessageOut(message="User deleted successfully")


@router.patch("/{user_id}/verify-email", response_model=UserOut)
def set_email_verified(
    user_id: int,
    payload: EmailVerifiedUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.USER_ADMINISTER)),
):
    return user_service.set_email_verified(db, user_id, payload.email_verified, actor)


@router.patch("/{user_id}/reset-password", response_model=MessageOut)
def reset_password(
    user_id: int,
    payload: AdminPasswordReset,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.USER_ADMINISTER)),
):
    user = user_service.admin_reset_password(db, user_id, payload.password, actor)
    return MessageOut(message=f"Password reset successfully for {user.username}")
