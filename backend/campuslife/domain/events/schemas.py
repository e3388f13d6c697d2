"""Pydantic schemas for Events API."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def normalise_category(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: dt.date
    time: Optional[str] = Field(default=None, max_length=50)
    location: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=500)
    capacity: Optional[int] = Field(default=None, ge=1)
    club_id: Optional[str] = None

    @field_validator("category")
    @classmethod
    def _category(cls, value: Optional[str]) -> Optional[str]:
        return normalise_category(value)


class EventUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, max_length=50)
    location: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=500)
    capacity: Optional[int] = Field(default=None, ge=1)

    @field_validator("title", "date")
    @classmethod
    def _not_null(cls, value):
        # Omit a field to leave it unchanged; an explicit null would blank a required column
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("category")
    @classmethod
    def _category(cls, value: Optional[str]) -> Optional[str]:
        return normalise_category(value)


class ClubRefSchema(BaseModel):
    id: str
    name: str


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    date: dt.date
    category: Optional[str] = None
    club_id: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    capacity: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    club: Optional[ClubRefSchema] = None
    registered_count: int = 0
    is_registered: bool = False
    can_manage: bool = False


class RegistrationResponse(BaseModel):
    event_id: str
    registered: bool
    registered_count: int
