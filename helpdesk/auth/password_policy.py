# helpdesk/auth/password_policy.py
import re
from dataclasses import dataclass, field

MIN_LENGTH = 8
SYMBOLS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile("[" + re.escape(SYMBOLS) + "]")


@dataclass(frozen=True)
class PasswordCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def validate_password(password: str) -> PasswordCheck:
    """Checks every rule and reports all violations, never raises."""
    password = password or ""
    errors = []

    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    if not _UPPER.search(password):
        errors.append("Password must contain at least 1 uppercase letter")
    if not _LOWER.search(password):
        errors.append("Password must contain at least 1 lowercase letter")
    if not _DIGIT.search(password):
        errors.append("Password must contain at least 1 number")
    if not _SYMBOL.search(password):
        errors.append(f"Password must contain at least 1 symbol ({SYMBOLS})")

    return PasswordCheck(is_valid=not errors, errors=errors)
