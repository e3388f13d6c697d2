"""Service for Announcements."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import HTTPException, status

from campuslife.domain.announcements.models import Announcement, announcement_from_row
from campuslife.domain.announcements.schemas import AnnouncementCreateRequest, AnnouncementUpdateRequest
from campuslife.domain.common.permissions import can_manage, ensure_can_manage
from campuslife.infra.auth import AuthenticatedUser
from campuslife.infra.query import Eq, Order, QueryClient, get_query_client

logger = logging.getLogger(__name__)


class AnnouncementService:
    def __init__(self, client: Optional[QueryClient] = None) -> None:
        self._client = client

    @property
    def db(self) -> QueryClient:
        return self._client or get_query_client()

    async def _load(self, announcement_id: str) -> Announcement:
        rows = await self.db.query_rows("announcements", [Eq("id", announcement_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="announcement_not_found")
        return announcement_from_row(rows[0])

    async def list_announcements(
        self,
        *,
        limit: int = 20,
        user: Optional[AuthenticatedUser] = None,
    ) -> List[Announcement]:
        """Newest first."""
        rows = await self.db.query_rows(
            "announcements",
            order=[Order("created_at", descending=True)],
            limit=limit,
        )
        announcements = [announcement_from_row(row) for row in rows]
        for item in announcements:
            item.can_manage = can_manage(user, item.created_by)
        return announcements

    async def create_announcement(self, user: AuthenticatedUser, data: AnnouncementCreateRequest) -> Announcement:
        row = await self.db.insert_row(
            "announcements",
            {"title": data.title, "content": data.content, "created_by": user.id},
        )
        announcement = announcement_from_row(row)
        announcement.can_manage = True
        logger.info("announcement.create announcement_id=%s", announcement.id)
        return announcement

    async def update_announcement(
        self,
        user: AuthenticatedUser,
        announcement_id: str,
        data: AnnouncementUpdateRequest,
    ) -> Announcement:
        current = await self._load(announcement_id)
        ensure_can_manage(user, current.created_by)
        rows = await self.db.update_rows(
            "announcements",
            [Eq("id", announcement_id)],
            {"title": data.title, "content": data.content},
        )
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="announcement_not_found")
        updated = announcement_from_row(rows[0])
        updated.can_manage = True
        return updated

    async def delete_announcement(self, user: AuthenticatedUser, announcement_id: str) -> None:
        current = await self._load(announcement_id)
        ensure_can_manage(user, current.created_by)
        await self.db.delete_rows("announcements", [Eq("id", announcement_id)])
        logger.info("announcement.delete announcement_id=%s", announcement_id)
