"""Domain models for Announcements."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass
class Announcement:
    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    can_manage: bool = False


def announcement_from_row(row: Mapping[str, Any]) -> Announcement:
    return Announcement(
        id=str(row["id"]),
        title=row["title"],
        content=row["content"],
        created_at=row.get("created_at"),
        created_by=str(row["created_by"]) if row.get("created_by") else None,
    )
