# helpdesk/comment/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from helpdesk.attachment.schemas import AttachmentOut
from helpdesk.user.schemas import UserSummary


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentOut(BaseModel):
    id: int
    ticket_id: int
    user_id: int | None = None
    content: str
    is_internal: bool
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None
    attachments: list[AttachmentOut] = []

    model_config = {"from_attributes": True}
