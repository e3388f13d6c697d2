"""Service for Clubs."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import HTTPException, status

from campuslife.domain.clubs.models import Club, ClubDetail, club_from_row
from campuslife.domain.clubs.schemas import ClubCreateRequest, ClubUpdateRequest
from campuslife.domain.common.permissions import can_manage, ensure_can_manage
from campuslife.domain.events.service import EventService
from campuslife.infra.auth import AuthenticatedUser
from campuslife.infra.query import DuplicateRow, Eq, Order, QueryClient, QueryError, get_query_client
from campuslife.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class ClubService:
    def __init__(self, client: Optional[QueryClient] = None) -> None:
        self._client = client

    @property
    def db(self) -> QueryClient:
        return self._client or get_query_client()

    async def _load(self, club_id: str) -> Club:
        rows = await self.db.query_rows("clubs", [Eq("id", club_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="club_not_found")
        return club_from_row(rows[0])

    async def member_count(self, club_id: str) -> int:
        return await self.db.count_rows("club_memberships", [Eq("club_id", club_id)])

    async def is_member(self, user_id: str, club_id: str) -> bool:
        count = await self.db.count_rows(
            "club_memberships",
            [Eq("club_id", club_id), Eq("user_id", user_id)],
        )
        return count > 0

    async def list_clubs(self, user: Optional[AuthenticatedUser] = None) -> List[Club]:
        """List all clubs with the caller's membership flags."""
        rows = await self.db.query_rows("clubs", order=[Order("name")])
        memberships: set[str] = set()
        if user is not None:
            member_rows = await self.db.query_rows(
                "club_memberships",
                [Eq("user_id", user.id)],
                columns=["club_id"],
            )
            memberships = {str(row["club_id"]) for row in member_rows}
        clubs = [club_from_row(row) for row in rows]
        for club in clubs:
            club.is_member = club.id in memberships
            club.can_manage = can_manage(user, club.created_by)
        return clubs

    async def get_club(self, club_id: str, user: Optional[AuthenticatedUser] = None) -> Club:
        club = await self._load(club_id)
        club.member_count = await self.member_count(club_id)
        club.is_member = user is not None and await self.is_member(user.id, club_id)
        club.can_manage = can_manage(user, club.created_by)
        return club

    async def get_club_detail(
        self,
        club_id: str,
        today: date,
        user: Optional[AuthenticatedUser] = None,
    ) -> ClubDetail:
        """Club page: the club, its upcoming events with registration counts, membership."""
        club = await self.get_club(club_id, user)
        events_service = EventService(self._client)
        events = await events_service.list_upcoming_events(today, club_id=club_id, limit=None, user=user)
        await events_service.with_registration_counts(events)
        return ClubDetail(**asdict(club), upcoming_events=events)

    async def create_club(self, user: AuthenticatedUser, data: ClubCreateRequest) -> Club:
        values = data.model_dump()
        values["created_by"] = user.id
        row = await self.db.insert_row("clubs", values)
        club = club_from_row(row)
        # The creator starts out as the first member
        try:
            await self.db.insert_row("club_memberships", {"club_id": club.id, "user_id": user.id})
        except QueryError:
            logger.warning("club.create.rollback club_id=%s", club.id)
            await self.db.delete_rows("clubs", [Eq("id", club.id)])
            raise
        club.member_count = 1
        club.is_member = True
        club.can_manage = True
        logger.info("club.create club_id=%s", club.id)
        return club

    async def update_club(self, user: AuthenticatedUser, club_id: str, data: ClubUpdateRequest) -> Club:
        club = await self._load(club_id)
        ensure_can_manage(user, club.created_by)
        changes = data.model_dump(exclude_unset=True)
        if changes:
            await self.db.update_rows("clubs", [Eq("id", club_id)], changes)
        return await self.get_club(club_id, user)

    async def delete_club(self, user: AuthenticatedUser, club_id: str) -> None:
        club = await self._load(club_id)
        ensure_can_manage(user, club.created_by)
        # Memberships cascade; events outlive their club with club_id set to NULL
        await self.db.delete_rows("clubs", [Eq("id", club_id)])
        logger.info("club.delete club_id=%s", club_id)

    async def join_club(self, user: AuthenticatedUser, club_id: str) -> int:
        """Join an existing club; joining twice is a no-op. Returns the member count."""
        await self._load(club_id)
        try:
            await self.db.insert_row("club_memberships", {"club_id": club_id, "user_id": user.id})
        except DuplicateRow:
            logger.info("club.join.duplicate club_id=%s", club_id)
        else:
            obs_metrics.inc_club_membership("join")
            logger.info("club.join club_id=%s", club_id)
        return await self.member_count(club_id)

    async def leave_club(self, user: AuthenticatedUser, club_id: str) -> int:
        await self._load(club_id)
        removed = await self.db.delete_rows(
            "club_memberships",
            [Eq("club_id", club_id), Eq("user_id", user.id)],
        )
        if not removed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_a_member")
        obs_metrics.inc_club_membership("leave")
        logger.info("club.leave club_id=%s", club_id)
        return await self.member_count(club_id)
