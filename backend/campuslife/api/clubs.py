"""FastAPI routes for clubs."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from campuslife.api.deps import get_today
from campuslife.domain.clubs import schemas
from campuslife.domain.clubs.service import ClubService
from campuslife.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(prefix="/clubs", tags=["clubs"])

_club_service = ClubService()


@router.get("", response_model=List[schemas.ClubResponse])
async def list_clubs_endpoint(
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> List[schemas.ClubResponse]:
    clubs = await _club_service.list_clubs(auth_user)
    return [schemas.ClubResponse.model_validate(asdict(club)) for club in clubs]


@router.post("", response_model=schemas.ClubResponse, status_code=status.HTTP_201_CREATED)
async def create_club_endpoint(
    payload: schemas.ClubCreateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ClubResponse:
    club = await _club_service.create_club(auth_user, payload)
    return schemas.ClubResponse.model_validate(asdict(club))


@router.get("/{club_id}", response_model=schemas.ClubDetailResponse)
async def get_club_endpoint(
    club_id: str,
    today: date = Depends(get_today),
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.ClubDetailResponse:
    detail = await _club_service.get_club_detail(club_id, today, auth_user)
    return schemas.ClubDetailResponse.model_validate(asdict(detail))


@router.patch("/{club_id}", response_model=schemas.ClubResponse)
async def update_club_endpoint(
    club_id: str,
    payload: schemas.ClubUpdateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ClubResponse:
    club = await _club_service.update_club(auth_user, club_id, payload)
    return schemas.ClubResponse.model_validate(asdict(club))


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_club_endpoint(
    club_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
    await _club_service.delete_club(auth_user, club_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{club_id}/join", response_model=schemas.MembershipResponse)
async def join_club_endpoint(
    club_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.MembershipResponse:
    count = await _club_service.join_club(auth_user, club_id)
    return schemas.MembershipResponse(club_id=club_id, is_member=True, member_count=count)


@router.post("/{club_id}/leave", response_model=schemas.MembershipResponse)
async def leave_club_endpoint(
    club_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.MembershipResponse:
    count = await _club_service.leave_club(auth_user, club_id)
    return schemas.MembershipResponse(club_id=club_id, is_member=False, member_count=count)
