"""Ownership checks shared by clubs, events and announcements."""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status

from campuslife.infra.auth import AuthenticatedUser


def can_manage(user: Optional[AuthenticatedUser], created_by: Optional[str]) -> bool:
    """Creators and admins may edit or delete a record."""
    if user is None:
        return False
    if user.is_admin:
        return True
    return created_by is not None and str(created_by) == str(user.id)


def ensure_can_manage(user: AuthenticatedUser, created_by: Optional[str]) -> None:
    if not can_manage(user, created_by):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
