"""Domain models for Events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional


@dataclass
class ClubRef:
    """The hosting club of an event, when there is one."""
    id: str
    name: str


@dataclass
class Event:
    id: str
    title: str
    description: Optional[str]
    date: date
    category: Optional[str] = None
    club_id: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    capacity: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    # Non-DB fields populated by service/queries
    club: Optional[ClubRef] = None
    registered_count: int = 0
    is_registered: bool = False
    can_manage: bool = False


def event_from_row(row: Mapping[str, Any]) -> Event:
    return Event(
        id=str(row["id"]),
        title=row["title"],
        description=row.get("description"),
        date=row["date"],
        category=row.get("category"),
        club_id=str(row["club_id"]) if row.get("club_id") else None,
        time=row.get("time"),
        location=row.get("location"),
        image_url=row.get("image_url"),
        capacity=row.get("capacity"),
        created_by=str(row["created_by"]) if row.get("created_by") else None,
        created_at=row.get("created_at"),
    )
