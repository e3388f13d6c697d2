"""Pydantic schemas for Clubs API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from campuslife.domain.events.schemas import EventResponse


class ClubCreateRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    meeting_time: Optional[str] = Field(default=None, max_length=100)
    location: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=500)
    image_url: Optional[str] = Field(default=None, max_length=500)


class ClubUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    meeting_time: Optional[str] = Field(default=None, max_length=100)
    location: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=500)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ClubResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    category: Optional[str] = None
    meeting_time: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    member_count: int = 0
    is_member: bool = False
    can_manage: bool = False


class ClubDetailResponse(ClubResponse):
    upcoming_events: List[EventResponse] = Field(default_factory=list)


class MembershipResponse(BaseModel):
    club_id: str
    is_member: bool
    member_count: int
