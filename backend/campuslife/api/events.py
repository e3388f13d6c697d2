"""FastAPI routes for events."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campuslife.api.deps import get_today
from campuslife.domain.events import schemas
from campuslife.domain.events.models import Event
from campuslife.domain.events.service import EventService
from campuslife.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(prefix="/events", tags=["events"])

_event_service = EventService()


def to_response(event: Event) -> schemas.EventResponse:
    return schemas.EventResponse.model_validate(asdict(event))


@router.get("", response_model=List[schemas.EventResponse])
async def list_events_endpoint(
    club_id: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    today: date = Depends(get_today),
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> List[schemas.EventResponse]:
    events = await _event_service.list_upcoming_events(
        today,
        club_id=club_id,
        category=category,
        limit=limit,
        user=auth_user,
    )
    return [to_response(event) for event in events]


@router.post("", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: schemas.EventCreateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.EventResponse:
    return to_response(await _event_service.create_event(auth_user, payload))


@router.get("/{event_id}", response_model=schemas.EventResponse)
async def get_event_endpoint(
    event_id: str,
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.EventResponse:
    return to_response(await _event_service.get_event(event_id, auth_user))


@router.patch("/{event_id}", response_model=schemas.EventResponse)
async def update_event_endpoint(
    event_id: str,
    payload: schemas.EventUpdateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.EventResponse:
    return to_response(await _event_service.update_event(auth_user, event_id, payload))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
    await _event_service.delete_event(auth_user, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/registration", response_model=schemas.RegistrationResponse)
async def register_endpoint(
    event_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.RegistrationResponse:
    count = await _event_service.register(auth_user, event_id)
    return schemas.RegistrationResponse(event_id=event_id, registered=True, registered_count=count)


@router.delete("/{event_id}/registration", response_model=schemas.RegistrationResponse)
async def unregister_endpoint(
    event_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.RegistrationResponse:
    count = await _event_service.unregister(auth_user, event_id)
    return schemas.RegistrationResponse(event_id=event_id, registered=False, registered_count=count)
