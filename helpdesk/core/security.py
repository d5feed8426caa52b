# helpdesk/core/security.py
"""Password hashing and signed session tokens."""

import secrets
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from helpdesk.core.config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unknown or malformed hash
        return False


def generate_temporary_password() -> str:
    """128 bits of randomness, hex encoded. Not checked against the password policy."""
    return secrets.token_hex(16)


def generate_numeric_code(digits: int = 6) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    """
    Creates a signed session token for a user.

    Args:
        user_id (int): The id of the authenticated user.
        role (str): The user's role at login time.
        settings (Settings): Supplies the secret, algorithm and lifetime.

    Returns:
        str: The encoded JWT.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "iat": now,
        "exp": now + timedelta(days=settings.TOKEN_EXPIRE_DAYS),
        "sub": str(user_id),
        "role": role,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Raises jwt.InvalidTokenError (or a subclass) when the token is not acceptable."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
