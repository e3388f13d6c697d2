"""Pydantic schemas for sign-up, sign-in, password reset and interests."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, EmailStr, Field

PASSWORD_MIN_LEN = 8
INTERESTS_MAX = 20


class SignUpRequest(BaseModel):
	email: EmailStr
	password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=256)
	display_name: str = Field(..., min_length=1, max_length=80)


class SignInRequest(BaseModel):
	email: EmailStr
	password: str = Field(..., min_length=1, max_length=256)


class TokenResponse(BaseModel):
	access_token: str
	token_type: str = "bearer"
	expires_in: int
	user_id: str


class ProfileResponse(BaseModel):
	id: str
	email: str
	display_name: str
	is_admin: bool = False


class PasswordResetRequest(BaseModel):
	email: EmailStr


class PasswordResetConfirm(BaseModel):
	token: str = Field(..., min_length=1)
	new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=256)


class InterestsPayload(BaseModel):
	interests: List[str] = Field(default_factory=list)
