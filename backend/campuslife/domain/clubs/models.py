"""Domain models for Clubs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from campuslife.domain.events.models import Event


@dataclass
class Club:
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

    # Non-DB fields populated by service/queries
    member_count: int = 0
    is_member: bool = False
    can_manage: bool = False


@dataclass
class ClubDetail(Club):
    upcoming_events: List[Event] = field(default_factory=list)


def club_from_row(row: Mapping[str, Any]) -> Club:
    return Club(
        id=str(row["id"]),
        name=row["name"],
        description=row.get("description"),
        category=row.get("category"),
        meeting_time=row.get("meeting_time"),
        location=row.get("location"),
        email=row.get("email"),
        website=row.get("website"),
        image_url=row.get("image_url"),
        created_by=str(row["created_by"]) if row.get("created_by") else None,
        created_at=row.get("created_at"),
    )
