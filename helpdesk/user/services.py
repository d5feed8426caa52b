# helpdesk/user/services.py
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor, Resource
from helpdesk.attachment.models import Attachment
from helpdesk.auth import tokens
from helpdesk.auth.password_policy import validate_password
from helpdesk.comment.models import Comment
from helpdesk.core.config import Settings
from helpdesk.core.errors import AuthenticationFailed, Conflict, NotFound, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.core.security import hash_password, verify_password
from helpdesk.group.models import GroupMembership
from helpdesk.setting.models import Setting
from helpdesk.ticket.models import Ticket
from helpdesk.user.models import Role, User
from helpdesk.user.schemas import UserCreate, UserUpdate

ADMIN_PASSWORD_MIN_LENGTH = 8


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def normalize_email(email: str) -> str:
    return str(email).strip().lower()


def get_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_by_login(db: Session, login: str) -> User | None:
    """A login containing "@" is an email address, anything else a username."""
    if "@" in login:
        return get_by_email(db, login)
    return get_by_username(db, login)


def username_taken(db: Session, username: str) -> bool:
    return get_by_username(db, username) is not None


def list_users(db: Session, roles: list[Role] | None = None) -> list[User]:
    query = db.query(User)
    if roles:
        query = query.filter(User.role.in_(roles))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def visible_users(db: Session, access: AccessControl, actor: Actor, roles: list[Role] | None) -> list[User]:
    """Admins see the whole roster; everyone else only role-filtered lists (assignee pickers)."""
    if roles:
        access.authorize(actor, Action.USER_LIST_BY_ROLE)
    else:
        access.authorize(actor, Action.USER_LIST)
    return list_users(db, roles)


def read_user(db: Session, access: AccessControl, actor: Actor, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise access.missing(actor, Action.USER_READ, "User not found")
    access.authorize(actor, Action.USER_READ, Resource(user_id=user.id))
    return user


def count_active_admins(db: Session) -> int:
    return db.query(User).filter(User.role == Role.ADMIN, User.is_active.is_(True)).count()


def _ensure_unique(db: Session, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
    if username is not None:
        other = get_by_username(db, username)
        if other is not None and other.id != exclude_id:
            raise Conflict("Username already taken")
    if email is not None:
        other = get_by_email(db, email)
        if other is not None and other.id != exclude_id:
            raise Conflict("Email already registered")


def commit_unique(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Username or email already exists") from e


def insert_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    role: Role = Role.CUSTOMER,
    first_name: str | None = None,
    last_name: str | None = None,
    email_verified: bool = False,
    force_password_change: bool = False,
) -> User:
    """Adds a user row without committing; callers own the transaction."""
    _ensure_unique(db, username, email)
    user = User(
        username=username,
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
        email_verified=email_verified,
        force_password_change=force_password_change,
    )
    db.add(user)
    db.flush()
    return user


def create_user(db: Session, payload: UserCreate, created_by: str = "system") -> User:
    """Admin-created accounts: the password is trusted, so no forced change."""
    check = validate_password(payload.password)
    if not check.is_valid:
        raise ValidationFailed(". ".join(check.errors), errors=check.errors)

    user = insert_user(
        db,
        username=payload.username,
        email=str(payload.email),
        password=payload.password,
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    commit_unique(db)
    db.refresh(user)
    logger.info(f"User created: {user.username} by {created_by}")
    return user


def _guard_last_admin(db: Session, user: User, new_role: Role | None, new_active: bool | None) -> None:
    if user.role != Role.ADMIN or not user.is_active:
        return
    loses_admin = (new_role is not None and new_role != Role.ADMIN) or new_active is False
    if loses_admin and count_active_admins(db) <= 1:
        raise ValidationFailed("At least one active admin must exist")


def update_user(db: Session, access: AccessControl, actor: Actor, user_id: int, payload: UserUpdate) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise access.missing(actor, Action.USER_UPDATE_PROFILE, "User not found")

    changes = payload.model_dump(exclude_unset=True)
    access.authorize_user_update(actor, Resource(user_id=user.id), changes.keys())
    if not changes:
        raise ValidationFailed("No updates provided")
    for field in ("username", "email", "role", "is_active"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")

    _ensure_unique(db, changes.get("username"), changes.get("email"), exclude_id=user.id)
    _guard_last_admin(db, user, changes.get("role"), changes.get("is_active"))

    for field, value in changes.items():
        setattr(user, field, normalize_email(value) if field == "email" else value)
    commit_unique(db)
    db.refresh(user)
    logger.info(f"User updated: {user.id} by user {actor.id}")
    return user


def set_password(db: Session, user: User, new_password: str) -> None:
    """Stores a new password and lifts any forced change. Does not commit."""
    user.password_hash = hash_password(new_password)
    user.force_password_change = False


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    check = validate_password(new_password)
    if not check.is_valid:
        raise ValidationFailed(". ".join(check.errors), errors=check.errors)
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationFailed("Current password is incorrect")
    set_password(db, user, new_password)
    db.commit()
    logger.info(f"Password changed for user: {user.username}")


def change_user_password(
    db: Session,
    access: AccessControl,
    actor: Actor,
    user_id: int,
    current_password: str,
    new_password: str,
) -> None:
    user = get_user(db, user_id)
    if user is None:
        raise access.missing(actor, Action.USER_CHANGE_PASSWORD, "User not found")
    access.authorize(actor, Action.USER_CHANGE_PASSWORD, Resource(user_id=user.id))
    change_password(db, user, current_password, new_password)


def admin_reset_password(db: Session, user_id: int, password: str, admin: Actor) -> User:
    """Bypasses the code flow; the admin-chosen password is not forced to change."""
    if len(password) < ADMIN_PASSWORD_MIN_LENGTH:
        raise ValidationFailed(f"Password must be at least {ADMIN_PASSWORD_MIN_LENGTH} characters")
    user = get_user(db, user_id)
    if user is None:
        raise NotFound("User not found")
    set_password(db, user, password)
    db.commit()
    logger.info(f"Password reset for user {user.username} by user {admin.id}")
    return user


def set_email_verified(db: Session, user_id: int, verified: bool, admin: Actor) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFound("User not found")
    user.email_verified = verified
    db.commit()
    db.refresh(user)
    logger.info(f"Email verification {'enabled' if verified else 'disabled'} for user {user.username} by user {admin.id}")
    return user


def delete_user(db: Session, user_id: int, admin: Actor) -> None:
    """
    Removes a user. Tickets, comments and uploads they own stay, with the
    owner reference set to null.
    """
    if user_id == admin.id:
        raise ValidationFailed("Cannot delete your own account")
    user = get_user(db, user_id)
    if user is None:
        raise NotFound("User not found")
    if user.role == Role.ADMIN and user.is_active and count_active_admins(db) <= 1:
        raise ValidationFailed("At least one active admin must exist")

    db.execute(update(Ticket).where(Ticket.customer_id == user_id).values(customer_id=None))
    db.execute(update(Ticket).where(Ticket.assigned_to == user_id).values(assigned_to=None))
    db.execute(update(Comment).where(Comment.user_id == user_id).values(user_id=None))
    db.execute(update(Attachment).where(Attachment.user_id == user_id).values(user_id=None))
    db.execute(update(Setting).where(Setting.updated_by == user_id).values(updated_by=None))
    db.query(GroupMembership).filter(GroupMembership.user_id == user_id).delete()
    tokens.purge(db, user_id)
    username = user.username
    db.delete(user)
    db.commit()
    db.expire_all()
    logger.info(f"User deleted: {username} by user {admin.id}")


def record_login(db: Session, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    db.commit()


def bootstrap_admin(db: Session, settings: Settings) -> User | None:
    """Creates the built-in admin when no admin exists. Returns the new user, if any."""
    if db.query(User).filter(User.role == Role.ADMIN).first() is not None:
        return None
    if username_taken(db, settings.ADMIN_USERNAME) or get_by_email(db, settings.ADMIN_EMAIL):
        logger.warning("No admin exists but the default admin username or email is taken; skipping bootstrap")
        return None

    admin = insert_user(
        db,
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD,
        role=Role.ADMIN,
        first_name="System",
        last_name="Administrator",
        # no real mailbox behind the built-in account
        email_verified=True,
        force_password_change=True,
    )
    db.commit()
    logger.info("Default admin user created (password must be changed on first login)")
    return admin