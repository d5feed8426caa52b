# helpdesk/setting/schemas.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class SettingOut(BaseModel):
    key: str
    value: str | None = None
    description: str | None = None
    updated_at: datetime
    updated_by: int | None = None

    model_config = {"from_attributes": True}


class SettingEntry(BaseModel):
    value: str | None = None
    description: str | None = None
    updated_at: datetime


class SettingUpdate(BaseModel):
    value: str | None = None
    description: str | None = None


class ThemeUpdate(BaseModel):
    theme_mode: Literal["light", "dark"] | None = None
    primary_color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    company_name: str | None = Field(default=None, min_length=1, max_length=100)
    logo_url: str | None = None
    favicon_url: str | None = None


class MessageOut(BaseModel):
    message: str


class BrandingOut(BaseModel):
    message: str
    url: str
