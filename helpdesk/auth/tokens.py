# helpdesk/auth/tokens.py
"""Storage for one-time lifecycle codes (email verification, password reset)."""

import enum
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.orm import Session

from helpdesk.auth.models import LifecycleToken, TokenPurpose
from helpdesk.core.security import generate_numeric_code


class TokenCheck(enum.Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def issue(
    db: Session,
    purpose: TokenPurpose,
    user_id: int,
    ttl: timedelta,
    now: datetime | None = None,
) -> LifecycleToken:
    """Stores a fresh 6-digit code for the user, replacing any live one. Does not commit."""
    now = now or datetime.now(timezone.utc)
    db.execute(
        delete(LifecycleToken).where(
            LifecycleToken.purpose == purpose,
            LifecycleToken.user_id == user_id,
        )
    )
    token = LifecycleToken(
        purpose=purpose,
        user_id=user_id,
        code=generate_numeric_code(),
        issued_at=now,
        expires_at=now + ttl,
    )
    db.add(token)
    db.flush()
    return token


def take_if_valid(
    db: Session,
    purpose: TokenPurpose,
    user_id: int,
    code: str,
    check_expiry: bool = True,
    now: datetime | None = None,
) -> TokenCheck:
    """
    Consumes a matching code in a single DELETE ... RETURNING statement.

    A matching row is removed whether it is still valid or already expired,
    so two concurrent callers can never both consume the same code. A
    non-matching code leaves the stored one untouched. Does not commit.
    """
    expires_at = db.execute(
        delete(LifecycleToken)
        .where(
            LifecycleToken.purpose == purpose,
            LifecycleToken.user_id == user_id,
            LifecycleToken.code == code,
        )
        .returning(LifecycleToken.expires_at)
    ).scalar_one_or_none()

    if expires_at is None:
        return TokenCheck.INVALID
    now = now or datetime.now(timezone.utc)
    if check_expiry and now > _as_utc(expires_at):
        return TokenCheck.EXPIRED
    return TokenCheck.VALID


def purge(db: Session, user_id: int) -> None:
    db.execute(delete(LifecycleToken).where(LifecycleToken.user_id == user_id))
