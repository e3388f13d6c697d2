from datetime import timedelta

import pytest

OWNER = {"X-User-Id": "00000000-0000-0000-0000-000000000001"}
MEMBER = {"X-User-Id": "00000000-0000-0000-0000-000000000002"}
ADMIN = {"X-User-Id": "00000000-0000-0000-0000-000000000003", "X-User-Roles": "admin"}


@pytest.mark.asyncio
async def test_club_lifecycle(api_client, fixed_today):
    created = await api_client.post("/clubs", json={"name": "Chess Club", "category": "games"}, headers=OWNER)
    assert created.status_code == 201
    club_id = created.json()["id"]

    joined = await api_client.post(f"/clubs/{club_id}/join", headers=MEMBER)
    assert joined.json() == {"club_id": club_id, "is_member": True, "member_count": 2}

    event = await api_client.post(
        "/events",
        json={"title": "Blitz tournament", "date": (fixed_today + timedelta(days=2)).isoformat(), "club_id": club_id},
        headers=OWNER,
    )
    assert event.status_code == 201
    event_id = event.json()["id"]

    registered = await api_client.post(f"/events/{event_id}/registration", headers=MEMBER)
    assert registered.json()["registered_count"] == 1

    detail = (await api_client.get(f"/clubs/{club_id}", headers=MEMBER)).json()
    assert detail["is_member"] is True
    assert detail["can_manage"] is False
    assert [e["registered_count"] for e in detail["upcoming_events"]] == [1]

    left = await api_client.post(f"/clubs/{club_id}/leave", headers=MEMBER)
    assert left.json()["member_count"] == 1
    again = await api_client.post(f"/clubs/{club_id}/leave", headers=MEMBER)
    assert again.status_code == 404
    assert again.json()["detail"] == "not_a_member"


@pytest.mark.asyncio
async def test_club_management_permissions(api_client):
    club_id = (await api_client.post("/clubs", json={"name": "Chess Club"}, headers=OWNER)).json()["id"]

    forbidden = await api_client.patch(f"/clubs/{club_id}", json={"location": "Hall B"}, headers=MEMBER)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "forbidden"

    ok = await api_client.patch(f"/clubs/{club_id}", json={"location": "Hall B"}, headers=ADMIN)
    assert ok.json()["location"] == "Hall B"

    assert (await api_client.delete(f"/clubs/{club_id}", headers=OWNER)).status_code == 204
    assert (await api_client.get(f"/clubs/{club_id}")).status_code == 404


@pytest.mark.asyncio
async def test_writes_require_authentication(api_client):
    response = await api_client.post("/clubs", json={"name": "Chess Club"})
    assert response.status_code == 401
    assert response.json()["detail"] == "invalid_token"


@pytest.mark.asyncio
async def test_dev_headers_ignored_outside_dev(api_client):
    from campuslife.settings import settings

    settings.environment = "production"
    response = await api_client.post("/clubs", json={"name": "Chess Club"}, headers=OWNER)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_patch_rejects_null_for_required_fields(api_client, fixed_today):
    club_id = (await api_client.post("/clubs", json={"name": "Chess Club"}, headers=OWNER)).json()["id"]
    event_id = (
        await api_client.post(
            "/events",
            json={"title": "Blitz tournament", "date": (fixed_today + timedelta(days=2)).isoformat()},
            headers=ADMIN,
        )
    ).json()["id"]

    club = await api_client.patch(f"/clubs/{club_id}", json={"name": None}, headers=OWNER)
    assert club.status_code == 422
    assert club.json()["detail"] == "validation_error"

    event = await api_client.patch(f"/events/{event_id}", json={"date": None, "title": None}, headers=ADMIN)
    assert event.status_code == 422
    assert event.json()["detail"] == "validation_error"

    detail = (await api_client.get(f"/events/{event_id}")).json()
    assert detail["title"] == "Blitz tournament"
    assert detail["date"] == (fixed_today + timedelta(days=2)).isoformat()
