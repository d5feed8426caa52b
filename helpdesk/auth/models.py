# helpdesk/auth/models.py
import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint

from helpdesk.core.database import Base
from helpdesk.user.models import enum_values


class TokenPurpose(str, enum.Enum):
    VERIFY_EMAIL = "verify_email"
    RESET_PASSWORD = "reset_password"


class LifecycleToken(Base):
    """One live code per (purpose, user); issuing a new one replaces the old."""

    __tablename__ = "lifecycle_tokens"
    __table_args__ = (UniqueConstraint("purpose", "user_id", name="uq_token_purpose_user"),)

    id = Column(Integer, primary_key=True)
    purpose = Column(
        Enum(TokenPurpose, name="token_purpose", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(16), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<LifecycleToken(purpose='{self.purpose.value}', user_id={self.user_id})>"
