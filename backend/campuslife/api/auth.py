"""Sign-up, sign-in and password reset endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from campuslife.domain.identity import schemas
from campuslife.domain.identity.service import IdentityService

router = APIRouter(prefix="/auth", tags=["identity"])

_identity_service = IdentityService()


@router.post("/signup", response_model=schemas.ProfileResponse, status_code=status.HTTP_201_CREATED)
async def signup_endpoint(payload: schemas.SignUpRequest) -> schemas.ProfileResponse:
    return await _identity_service.sign_up(payload)


@router.post("/signin", response_model=schemas.TokenResponse)
async def signin_endpoint(payload: schemas.SignInRequest) -> schemas.TokenResponse:
    return await _identity_service.sign_in(payload)


@router.post("/reset", status_code=status.HTTP_202_ACCEPTED)
async def reset_request_endpoint(payload: schemas.PasswordResetRequest) -> dict[str, bool]:
    await _identity_service.request_password_reset(payload)
    return {"ok": True}


@router.post("/reset/confirm")
async def reset_confirm_endpoint(payload: schemas.PasswordResetConfirm) -> dict[str, bool]:
    await _identity_service.confirm_password_reset(payload)
    return {"ok": True}
