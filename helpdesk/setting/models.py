# helpdesk/setting/models.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from helpdesk.core.database import Base


class Setting(Base):
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text)
    description = Column(Text)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    def __repr__(self) -> str:
        return f"<Setting(key='{self.key}')>"
