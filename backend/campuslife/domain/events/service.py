"""Service for Events."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable, List, Optional

from fastapi import HTTPException, status

from campuslife.domain.common.permissions import can_manage, ensure_can_manage
from campuslife.domain.events.models import ClubRef, Event, event_from_row
from campuslife.domain.events.schemas import EventCreateRequest, EventUpdateRequest
from campuslife.infra.auth import AuthenticatedUser
from campuslife.infra.query import DuplicateRow, Eq, Gte, In, Order, QueryClient, get_query_client
from campuslife.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


async def attach_clubs(client: QueryClient, events: Iterable[Event]) -> None:
    """Resolve each event's hosting club into a single optional ClubRef."""
    events = list(events)
    club_ids = sorted({e.club_id for e in events if e.club_id})
    if not club_ids:
        return
    rows = await client.query_rows("clubs", [In("id", club_ids)], columns=["id", "name"])
    by_id = {str(row["id"]): ClubRef(id=str(row["id"]), name=row["name"]) for row in rows}
    for event in events:
        event.club = by_id.get(event.club_id) if event.club_id else None


class EventService:
    def __init__(self, client: Optional[QueryClient] = None) -> None:
        self._client = client

    @property
    def db(self) -> QueryClient:
        return self._client or get_query_client()

    async def list_upcoming_events(
        self,
        today: date,
        *,
        club_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: Optional[int] = 50,
        user: Optional[AuthenticatedUser] = None,
    ) -> List[Event]:
        filters = [Gte("date", today)]
        if club_id:
            filters.append(Eq("club_id", club_id))
        if category:
            filters.append(Eq("category", category.strip().lower()))
        rows = await self.db.query_rows("events", filters, order=[Order("date")], limit=limit)
        events = [event_from_row(row) for row in rows]
        await attach_clubs(self.db, events)
        for event in events:
            event.can_manage = can_manage(user, event.created_by)
        return events

    async def _load(self, event_id: str) -> Event:
        rows = await self.db.query_rows("events", [Eq("id", event_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event_not_found")
        return event_from_row(rows[0])

    async def registered_count(self, event_id: str) -> int:
        return await self.db.count_rows("event_registrations", [Eq("event_id", event_id)])

    async def is_registered(self, user_id: str, event_id: str) -> bool:
        count = await self.db.count_rows(
            "event_registrations",
            [Eq("event_id", event_id), Eq("user_id", user_id)],
        )
        return count > 0

    async def with_registration_counts(self, events: List[Event]) -> List[Event]:
        counts = await asyncio.gather(*(self.registered_count(e.id) for e in events))
        for event, count in zip(events, counts):
            event.registered_count = count
        return events

    async def get_event(self, event_id: str, user: Optional[AuthenticatedUser] = None) -> Event:
        event = await self._load(event_id)
        await attach_clubs(self.db, [event])
        event.registered_count = await self.registered_count(event.id)
        if user is not None:
            event.is_registered = await self.is_registered(user.id, event.id)
        event.can_manage = can_manage(user, event.created_by)
        return event

    async def create_event(self, user: AuthenticatedUser, data: EventCreateRequest) -> Event:
        """Admins may create any event; club owners may create events for their club."""
        if data.club_id:
            clubs = await self.db.query_rows("clubs", [Eq("id", data.club_id)], columns=["id", "created_by"], limit=1)
            if not clubs:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="club_not_found")
            ensure_can_manage(user, clubs[0]["created_by"])
        elif not user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")

        values = data.model_dump()
        values["created_by"] = user.id
        row = await self.db.insert_row("events", values)
        event = event_from_row(row)
        await attach_clubs(self.db, [event])
        event.can_manage = True
        logger.info("event.create event_id=%s club_id=%s", event.id, event.club_id)
        return event

    async def update_event(self, user: AuthenticatedUser, event_id: str, data: EventUpdateRequest) -> Event:
        event = await self._load(event_id)
        ensure_can_manage(user, event.created_by)
        changes = data.model_dump(exclude_unset=True)
        if changes:
            await self.db.update_rows("events", [Eq("id", event_id)], changes)
        return await self.get_event(event_id, user)

    async def delete_event(self, user: AuthenticatedUser, event_id: str) -> None:
        event = await self._load(event_id)
        ensure_can_manage(user, event.created_by)
        # Registrations go with the event (ON DELETE CASCADE)
        await self.db.delete_rows("events", [Eq("id", event_id)])
        logger.info("event.delete event_id=%s", event_id)

    async def register(self, user: AuthenticatedUser, event_id: str) -> int:
        """Register the user; returns the new registration count. Idempotent."""
        event = await self._load(event_id)
        if await self.is_registered(user.id, event_id):
            return await self.registered_count(event_id)
        values = {"event_id": event_id, "user_id": user.id}
        try:
            if event.capacity is None:
                await self.db.insert_row("event_registrations", values)
            else:
                # Count and insert happen as one step so concurrent sign-ups cannot overfill
                row = await self.db.insert_row_capped(
                    "event_registrations",
                    values,
                    scope=[Eq("event_id", event_id)],
                    cap=event.capacity,
                )
                if row is None:
                    if await self.is_registered(user.id, event_id):
                        return await self.registered_count(event_id)
                    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="event_full")
        except DuplicateRow:
            logger.info("event.register.duplicate event_id=%s", event_id)
        else:
            obs_metrics.inc_event_registration("register")
        return await self.registered_count(event_id)

    async def unregister(self, user: AuthenticatedUser, event_id: str) -> int:
        await self._load(event_id)
        removed = await self.db.delete_rows(
            "event_registrations",
            [Eq("event_id", event_id), Eq("user_id", user.id)],
        )
        if not removed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_registered")
        obs_metrics.inc_event_registration("unregister")
        return await self.registered_count(event_id)
