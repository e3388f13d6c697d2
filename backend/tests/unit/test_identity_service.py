from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import HTTPException

from campuslife.domain.identity import mailer, schemas
from campuslife.domain.identity.service import IdentityService, normalise_interests
from campuslife.infra import jwt as jwt_helper
from campuslife.infra.auth import AuthenticatedUser, verify_access_jwt


@pytest.fixture
def identity_service(memory_db):
	return IdentityService(memory_db)


@pytest.fixture
def sent_links(monkeypatch):
	links = []

	async def _capture(email, link):
		links.append((email, link))
		return True

	monkeypatch.setattr(mailer, "send_password_reset", _capture)
	return links


async def _sign_up(service, email="ada@campus.edu", password="correct horse"):
	return await service.sign_up(schemas.SignUpRequest(email=email, password=password, display_name="Ada"))


@pytest.mark.asyncio
async def test_sign_up_then_sign_in_issues_access_token(identity_service, memory_db):
	profile = await _sign_up(identity_service, email="Ada@Campus.edu")
	assert profile.email == "ada@campus.edu"

	[row] = await memory_db.query_rows("profiles")
	assert row["password_hash"] != "correct horse"

	token = await identity_service.sign_in(schemas.SignInRequest(email="ada@campus.edu", password="correct horse"))
	claims = jwt_helper.decode_access(token.access_token)
	assert claims["sub"] == profile.id
	assert claims["roles"] == []

	user = verify_access_jwt(token.access_token)
	assert user.id == profile.id and not user.is_admin


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(identity_service):
	await _sign_up(identity_service)
	with pytest.raises(HTTPException) as exc:
		await _sign_up(identity_service, email="ADA@campus.edu")
	assert exc.value.status_code == 409
	assert exc.value.detail == "email_taken"


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"email,password",
	[("ada@campus.edu", "wrong password"), ("nobody@campus.edu", "correct horse")],
)
async def test_bad_credentials_are_indistinguishable(identity_service, email, password):
	await _sign_up(identity_service)
	with pytest.raises(HTTPException) as exc:
		await identity_service.sign_in(schemas.SignInRequest(email=email, password=password))
	assert exc.value.status_code == 401
	assert exc.value.detail == "invalid_credentials"


@pytest.mark.asyncio
async def test_admin_profile_gets_admin_role(identity_service, memory_db):
	profile = await _sign_up(identity_service)
	await memory_db.update_rows("profiles", [], {"is_admin": True})
	token = await identity_service.sign_in(schemas.SignInRequest(email="ada@campus.edu", password="correct horse"))
	assert verify_access_jwt(token.access_token).is_admin
	assert verify_access_jwt(token.access_token).id == profile.id


@pytest.mark.asyncio
async def test_password_reset_round_trip(identity_service, sent_links, fake_redis):
	await _sign_up(identity_service)
	await identity_service.request_password_reset(schemas.PasswordResetRequest(email="ada@campus.edu"))
	[(email, link)] = sent_links
	assert email == "ada@campus.edu"
	token = parse_qs(urlparse(link).query)["token"][0]
	assert await fake_redis.ttl(f"pwreset:{token}") > 0

	await identity_service.confirm_password_reset(
		schemas.PasswordResetConfirm(token=token, new_password="battery staple")
	)
	await identity_service.sign_in(schemas.SignInRequest(email="ada@campus.edu", password="battery staple"))

	# Tokens are single use
	with pytest.raises(HTTPException) as exc:
		await identity_service.confirm_password_reset(
			schemas.PasswordResetConfirm(token=token, new_password="another one")
		)
	assert exc.value.detail == "invalid_token"


@pytest.mark.asyncio
async def test_reset_for_unknown_email_is_silent(identity_service, sent_links, fake_redis):
	await identity_service.request_password_reset(schemas.PasswordResetRequest(email="ghost@campus.edu"))
	assert sent_links == []
	assert await fake_redis.keys("pwreset:*") == []


@pytest.mark.asyncio
async def test_interests_are_normalised(identity_service):
	profile = await _sign_up(identity_service)
	user = AuthenticatedUser(id=profile.id)
	saved = await identity_service.set_interests(user, [" Music", "music", "SPORTS", ""])
	assert saved == ["music", "sports"]
	assert await identity_service.get_interests(user) == ["music", "sports"]


def test_too_many_interests_rejected():
	with pytest.raises(HTTPException) as exc:
		normalise_interests(f"tag{i}" for i in range(21))
	assert exc.value.status_code == 422


@pytest.mark.asyncio
async def test_interests_for_missing_profile(identity_service):
	ghost = AuthenticatedUser(id="ghost")
	assert await identity_service.get_interests(ghost) == []
	with pytest.raises(HTTPException) as exc:
		await identity_service.set_interests(ghost, ["music"])
	assert exc.value.status_code == 404
