"""Home page: announcement preview and personalized featured events."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from campuslife.api.deps import get_today
from campuslife.api.events import to_response
from campuslife.domain.announcements.schemas import AnnouncementResponse
from campuslife.domain.announcements.service import AnnouncementService
from campuslife.domain.events.schemas import EventResponse
from campuslife.domain.feed.service import FeedService
from campuslife.infra.auth import AuthenticatedUser, get_optional_user
from campuslife.settings import settings

router = APIRouter(tags=["home"])

_feed_service = FeedService()
_announcement_service = AnnouncementService()


class HomeResponse(BaseModel):
    announcements: List[AnnouncementResponse]
    featured_events: List[EventResponse]


@router.get("/events/featured", response_model=List[EventResponse])
async def featured_events_endpoint(
    limit: Optional[int] = Query(default=None, ge=1, le=20),
    today: date = Depends(get_today),
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> List[EventResponse]:
    events = await _feed_service.select_featured_events(
        today,
        user_id=auth_user.id if auth_user else None,
        limit=limit,
    )
    return [to_response(event) for event in events]


@router.get("/home", response_model=HomeResponse)
async def home_endpoint(
    today: date = Depends(get_today),
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> HomeResponse:
    announcements = await _announcement_service.list_announcements(
        limit=settings.home_announcements_limit,
        user=auth_user,
    )
    events = await _feed_service.select_featured_events(today, user_id=auth_user.id if auth_user else None)
    return HomeResponse(
        announcements=[AnnouncementResponse.model_validate(asdict(item)) for item in announcements],
        featured_events=[to_response(event) for event in events],
    )
