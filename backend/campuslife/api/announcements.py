"""FastAPI routes for announcements."""

from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campuslife.domain.announcements import schemas
from campuslife.domain.announcements.service import AnnouncementService
from campuslife.infra.auth import AuthenticatedUser, get_admin_user, get_current_user, get_optional_user

router = APIRouter(prefix="/announcements", tags=["announcements"])

_announcement_service = AnnouncementService()


@router.get("", response_model=List[schemas.AnnouncementResponse])
async def list_announcements_endpoint(
    limit: int = Query(default=20, ge=1, le=100),
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> List[schemas.AnnouncementResponse]:
    items = await _announcement_service.list_announcements(limit=limit, user=auth_user)
    return [schemas.AnnouncementResponse.model_validate(asdict(item)) for item in items]


@router.post("", response_model=schemas.AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement_endpoint(
    payload: schemas.AnnouncementCreateRequest,
    auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.AnnouncementResponse:
    item = await _announcement_service.create_announcement(auth_user, payload)
    return schemas.AnnouncementResponse.model_validate(asdict(item))


@router.patch("/{announcement_id}", response_model=schemas.AnnouncementResponse)
async def update_announcement_endpoint(
    announcement_id: str,
    payload: schemas.AnnouncementUpdateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.AnnouncementResponse:
    item = await _announcement_service.update_announcement(auth_user, announcement_id, payload)
    return schemas.AnnouncementResponse.model_validate(asdict(item))


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement_endpoint(
    announcement_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
    await _announcement_service.delete_announcement(auth_user, announcement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
