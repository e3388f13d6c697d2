from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from campuslife.domain.announcements.schemas import AnnouncementCreateRequest, AnnouncementUpdateRequest
from campuslife.domain.announcements.service import AnnouncementService
from campuslife.infra.auth import AuthenticatedUser

ADMIN = AuthenticatedUser(id="admin-1", roles=("admin",))
OTHER_ADMIN = AuthenticatedUser(id="admin-2", roles=("admin",))
STUDENT = AuthenticatedUser(id="student-1")


@pytest.fixture
def announcement_service(memory_db):
    return AnnouncementService(memory_db)


@pytest.mark.asyncio
async def test_list_is_newest_first_and_limited(announcement_service, memory_db):
    base = datetime(2026, 3, 1, tzinfo=timezone.utc)
    await memory_db.seed(
        "announcements",
        [
            {"title": f"Notice {i}", "content": "body", "created_at": base + timedelta(hours=i)}
            for i in range(5)
        ],
    )
    items = await announcement_service.list_announcements(limit=3)
    assert [a.title for a in items] == ["Notice 4", "Notice 3", "Notice 2"]


@pytest.mark.asyncio
async def test_create_and_edit_trims_fields(announcement_service):
    created = await announcement_service.create_announcement(
        ADMIN, AnnouncementCreateRequest(title="  Snow day ", content=" Campus closed ")
    )
    assert created.title == "Snow day"
    assert created.content == "Campus closed"

    updated = await announcement_service.update_announcement(
        ADMIN, created.id, AnnouncementUpdateRequest(title="Snow day (update)", content="Opens at noon")
    )
    assert updated.title == "Snow day (update)"


def test_blank_title_or_content_is_rejected():
    with pytest.raises(ValidationError):
        AnnouncementUpdateRequest(title="   ", content="text")
    with pytest.raises(ValidationError):
        AnnouncementCreateRequest(title="Title", content="\n")


@pytest.mark.asyncio
async def test_only_creator_or_admin_may_edit_or_delete(announcement_service, memory_db):
    [row] = await memory_db.seed(
        "announcements",
        [{"title": "Elections", "content": "Vote Friday", "created_by": ADMIN.id}],
    )
    with pytest.raises(HTTPException) as exc:
        await announcement_service.update_announcement(
            STUDENT, row["id"], AnnouncementUpdateRequest(title="x", content="y")
        )
    assert exc.value.status_code == 403

    listing = await announcement_service.list_announcements(user=STUDENT)
    assert not listing[0].can_manage

    await announcement_service.delete_announcement(OTHER_ADMIN, row["id"])
    assert await memory_db.count_rows("announcements") == 0

    with pytest.raises(HTTPException) as exc:
        await announcement_service.delete_announcement(ADMIN, row["id"])
    assert exc.value.status_code == 404
