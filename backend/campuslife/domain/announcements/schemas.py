"""Pydantic schemas for Announcements API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(..., max_length=200)
    content: str = Field(..., max_length=10000)

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class AnnouncementUpdateRequest(AnnouncementCreateRequest):
    """Edits replace both title and content, same rules as creation."""


class AnnouncementResponse(BaseModel):
    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    can_manage: bool = False
