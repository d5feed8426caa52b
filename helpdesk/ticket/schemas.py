# helpdesk/ticket/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from helpdesk.attachment.schemas import AttachmentOut
from helpdesk.ticket.models import TicketPriority, TicketStatus


class TicketBase(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class TicketUpdate(BaseModel):
    subject: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: int | None = None
    group_id: int | None = None


class TicketOut(TicketBase):
    id: int
    ticket_number: int
    status: TicketStatus
    priority: TicketPriority
    customer_id: int | None = None
    assigned_to: int | None = None
    group_id: int | None = None
    customer_username: str | None = None
    customer_email: str | None = None
    assigned_username: str | None = None
    group_name: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    closed_at: datetime | None = None

    model_config = {"from_attributes": True}


class TicketListItem(TicketOut):
    comment_count: int = 0


class TicketDetail(TicketOut):
    # comment uploads are listed with their comment
    attachments: list[AttachmentOut] = Field(default=[], validation_alias="ticket_attachments")
