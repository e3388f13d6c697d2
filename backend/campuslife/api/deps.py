"""Shared FastAPI dependencies."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import Depends, Request

from campuslife.infra.auth import AuthenticatedUser, get_optional_user


def get_today() -> date:
    """Calendar date used for "upcoming" filters (UTC)."""
    return datetime.now(timezone.utc).date()


async def get_actor_key(
    request: Request,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> str:
    """Identify the caller for rate limits and search sessions.

    Anonymous callers are keyed by the connecting address. Client-supplied
    forwarding headers are not read here; behind a trusted proxy run uvicorn
    with ``--proxy-headers`` and ``--forwarded-allow-ips`` so the address is
    already resolved.
    """
    if user is not None:
        return f"user:{user.id}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"
