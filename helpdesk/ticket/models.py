# helpdesk/ticket/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from helpdesk.core.database import Base
from helpdesk.user.models import enum_values


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    ticket_number = Column(Integer, unique=True, nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=TicketStatus.OPEN,
        index=True,
    )
    priority = Column(
        Enum(TicketPriority, name="ticket_priority", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=TicketPriority.LOW,
    )
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
    resolved_at = Column(DateTime(timezone=True))
    closed_at = Column(DateTime(timezone=True))

    customer = relationship("User", foreign_keys=[customer_id])
    assignee = relationship("User", foreign_keys=[assigned_to])
    group = relationship("Group")
    comments = relationship(
        "Comment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.id",
    )
    attachments = relationship(
        "Attachment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def transition_to(self, status: TicketStatus, now: datetime | None = None) -> bool:
        """
        Moves the ticket to `status`, stamping resolved_at/closed_at on entry.

        Stamps are never cleared when the ticket later moves back to an
        earlier status. Returns True when the status actually changed.
        """
        if status == self.status:
            return False
        now = now or datetime.now(timezone.utc)
        if status == TicketStatus.RESOLVED:
            self.resolved_at = now
        elif status == TicketStatus.CLOSED:
            self.closed_at = now
        self.status = status
        return True

    @property
    def customer_username(self) -> str | None:
        return self.customer.username if self.customer else None

    @property
    def customer_email(self) -> str | None:
        return self.customer.email if self.customer else None

    @property
    def assigned_username(self) -> str | None:
        return self.assignee.username if self.assignee else None

    @property
    def group_name(self) -> str | None:
        return self.group.name if self.group else None

    @property
    def ticket_attachments(self):
        return [a for a in self.attachments if a.comment_id is None]

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, number={self.ticket_number}, status='{self.status.value}')>"
