"""Accounts, sign-in, password reset and interest tags."""

from __future__ import annotations

import logging
import secrets
from typing import Iterable, List, Optional

from fastapi import HTTPException, status

from campuslife.domain.identity import mailer, schemas
from campuslife.infra import jwt as jwt_helper
from campuslife.infra.auth import AuthenticatedUser
from campuslife.infra.password import check_needs_rehash, hash_password, verify_password
from campuslife.infra.query import DuplicateRow, Eq, QueryClient, get_query_client
from campuslife.infra.redis import redis_client
from campuslife.obs import metrics as obs_metrics
from campuslife.settings import settings

logger = logging.getLogger(__name__)

RESET_KEY = "pwreset:{token}"


def normalise_email(email: str) -> str:
	return email.strip().lower()


def normalise_interests(tags: Iterable[str]) -> List[str]:
	"""Lower-case, trim and de-duplicate tags, keeping first-seen order."""

	seen: List[str] = []
	for tag in tags:
		value = str(tag).strip().lower()
		if value and value not in seen:
			seen.append(value)
	if len(seen) > schemas.INTERESTS_MAX:
		raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="too_many_interests")
	return seen


class IdentityService:
	def __init__(self, client: Optional[QueryClient] = None) -> None:
		self._client = client

	@property
	def db(self) -> QueryClient:
		return self._client or get_query_client()

	async def _find_by_email(self, email: str) -> Optional[dict]:
		rows = await self.db.query_rows("profiles", [Eq("email", normalise_email(email))], limit=1)
		return rows[0] if rows else None

	async def sign_up(self, payload: schemas.SignUpRequest) -> schemas.ProfileResponse:
		email = normalise_email(payload.email)
		try:
			row = await self.db.insert_row(
				"profiles",
				{
					"email": email,
					"display_name": payload.display_name.strip(),
					"password_hash": hash_password(payload.password),
				},
			)
		except DuplicateRow:
			obs_metrics.inc_identity("signup", "conflict")
			raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email_taken")
		obs_metrics.inc_identity("signup", "ok")
		logger.info("identity.signup user_id=%s", row["id"])
		return schemas.ProfileResponse(
			id=str(row["id"]),
			email=row["email"],
			display_name=row["display_name"],
			is_admin=bool(row.get("is_admin")),
		)

	async def sign_in(self, payload: schemas.SignInRequest) -> schemas.TokenResponse:
		row = await self._find_by_email(payload.email)
		if not row or not row.get("password_hash") or not verify_password(row["password_hash"], payload.password):
			obs_metrics.inc_identity("signin", "failed")
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_credentials")
		user_id = str(row["id"])
		if check_needs_rehash(row["password_hash"]):
			await self.db.update_rows("profiles", [Eq("id", user_id)], {"password_hash": hash_password(payload.password)})
		roles = ["admin"] if row.get("is_admin") else []
		ttl = settings.access_ttl_minutes * 60
		token = jwt_helper.encode_access(
			{"sub": user_id, "email": row["email"], "name": row["display_name"], "roles": roles},
			ttl_seconds=ttl,
		)
		obs_metrics.inc_identity("signin", "ok")
		return schemas.TokenResponse(access_token=token, expires_in=ttl, user_id=user_id)

	async def request_password_reset(self, payload: schemas.PasswordResetRequest) -> None:
		"""Issue a single-use reset token. Unknown emails look the same to the caller."""

		row = await self._find_by_email(payload.email)
		if not row:
			obs_metrics.inc_identity("pwreset_request", "unknown")
			return
		token = secrets.token_urlsafe(32)
		await redis_client.set(
			RESET_KEY.format(token=token),
			str(row["id"]),
			ex=settings.password_reset_ttl_seconds,
		)
		link = f"{settings.public_app_url.rstrip('/')}/reset-password?token={token}"
		await mailer.send_password_reset(row["email"], link)
		obs_metrics.inc_identity("pwreset_request", "ok")
		logger.info("identity.pwreset.requested user_id=%s", row["id"])

	async def confirm_password_reset(self, payload: schemas.PasswordResetConfirm) -> None:
		key = RESET_KEY.format(token=payload.token)
		async with redis_client.pipeline(transaction=True) as pipe:
			pipe.get(key)
			pipe.delete(key)
			user_id, _ = await pipe.execute()
		if not user_id:
			obs_metrics.inc_identity("pwreset_confirm", "invalid")
			raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_token")
		if isinstance(user_id, bytes):
			user_id = user_id.decode("utf-8")
		updated = await self.db.update_rows(
			"profiles",
			[Eq("id", user_id)],
			{"password_hash": hash_password(payload.new_password)},
		)
		if not updated:
			obs_metrics.inc_identity("pwreset_confirm", "invalid")
			raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_token")
		obs_metrics.inc_identity("pwreset_confirm", "ok")
		logger.info("identity.pwreset.completed user_id=%s", user_id)

	async def get_interests(self, user: AuthenticatedUser) -> List[str]:
		rows = await self.db.query_rows("profiles", [Eq("id", user.id)], columns=["interests"], limit=1)
		if not rows:
			return []
		return list(rows[0].get("interests") or [])

	async def set_interests(self, user: AuthenticatedUser, tags: Iterable[str]) -> List[str]:
		interests = normalise_interests(tags)
		updated = await self.db.update_rows("profiles", [Eq("id", user.id)], {"interests": interests})
		if not updated:
			raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="profile_not_found")
		return interests
