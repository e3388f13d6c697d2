"""Profile endpoints: interest tags used by the featured-events feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from campuslife.domain.identity import schemas
from campuslife.domain.identity.service import IdentityService
from campuslife.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/profile", tags=["identity"])

_identity_service = IdentityService()


@router.get("/interests", response_model=schemas.InterestsPayload)
async def get_interests_endpoint(
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.InterestsPayload:
    return schemas.InterestsPayload(interests=await _identity_service.get_interests(auth_user))


@router.put("/interests", response_model=schemas.InterestsPayload)
async def put_interests_endpoint(
    payload: schemas.InterestsPayload,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.InterestsPayload:
    interests = await _identity_service.set_interests(auth_user, payload.interests)
    return schemas.InterestsPayload(interests=interests)
