# helpdesk/group/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from helpdesk.user.schemas import UserSummary


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None


class GroupCreate(GroupBase):
    pass


class GroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None


class GroupOut(GroupBase):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GroupDetail(GroupOut):
    members: list[UserSummary] = []


class MemberAdd(BaseModel):
    user_id: int
