from datetime import date, timedelta

import asyncio

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from campuslife.domain.events.schemas import EventCreateRequest, EventUpdateRequest
from campuslife.domain.events.service import EventService
from campuslife.infra.auth import AuthenticatedUser

TODAY = date(2026, 3, 14)

ADMIN = AuthenticatedUser(id="admin-1", roles=("admin",))
OWNER = AuthenticatedUser(id="owner-1")
STUDENT = AuthenticatedUser(id="student-1")
OTHER = AuthenticatedUser(id="student-2")


@pytest.fixture
def event_service(memory_db):
    return EventService(memory_db)


def _payload(**overrides):
    data = {"title": "Welcome Mixer", "date": TODAY + timedelta(days=1), "category": " Social "}
    data.update(overrides)
    return EventCreateRequest(**data)


@pytest.mark.asyncio
async def test_admin_creates_unaffiliated_event(event_service):
    event = await event_service.create_event(ADMIN, _payload())
    assert event.category == "social"
    assert event.club is None
    assert event.can_manage


@pytest.mark.asyncio
async def test_students_need_a_club_they_own(event_service, memory_db):
    with pytest.raises(HTTPException) as exc:
        await event_service.create_event(STUDENT, _payload())
    assert exc.value.status_code == 403

    [club] = await memory_db.seed("clubs", [{"name": "Board Games", "created_by": OWNER.id}])
    with pytest.raises(HTTPException):
        await event_service.create_event(STUDENT, _payload(club_id=club["id"]))

    event = await event_service.create_event(OWNER, _payload(club_id=club["id"]))
    assert event.club is not None and event.club.name == "Board Games"

    with pytest.raises(HTTPException) as exc:
        await event_service.create_event(OWNER, _payload(club_id="missing"))
    assert exc.value.detail == "club_not_found"


@pytest.mark.asyncio
async def test_list_upcoming_filters_and_orders(event_service, memory_db):
    await memory_db.seed(
        "events",
        [
            {"title": "Yesterday", "date": TODAY - timedelta(days=1), "category": "social"},
            {"title": "Next week", "date": TODAY + timedelta(days=7), "category": "social"},
            {"title": "Today", "date": TODAY, "category": "academic"},
        ],
    )
    events = await event_service.list_upcoming_events(TODAY)
    assert [e.title for e in events] == ["Today", "Next week"]

    social = await event_service.list_upcoming_events(TODAY, category="SOCIAL")
    assert [e.title for e in social] == ["Next week"]


@pytest.mark.asyncio
async def test_registration_is_idempotent_and_respects_capacity(event_service):
    event = await event_service.create_event(ADMIN, _payload(capacity=1))

    assert await event_service.register(STUDENT, event.id) == 1
    assert await event_service.register(STUDENT, event.id) == 1

    with pytest.raises(HTTPException) as exc:
        await event_service.register(OTHER, event.id)
    assert exc.value.status_code == 409
    assert exc.value.detail == "event_full"

    detail = await event_service.get_event(event.id, STUDENT)
    assert detail.is_registered and detail.registered_count == 1

    assert await event_service.unregister(STUDENT, event.id) == 0
    with pytest.raises(HTTPException) as exc:
        await event_service.unregister(STUDENT, event.id)
    assert exc.value.detail == "not_registered"


@pytest.mark.asyncio
async def test_update_and_delete_require_creator_or_admin(event_service, memory_db):
    [club] = await memory_db.seed("clubs", [{"name": "Board Games", "created_by": OWNER.id}])
    event = await event_service.create_event(OWNER, _payload(club_id=club["id"]))

    with pytest.raises(HTTPException) as exc:
        await event_service.update_event(STUDENT, event.id, EventUpdateRequest(title="Hijacked"))
    assert exc.value.status_code == 403

    updated = await event_service.update_event(OWNER, event.id, EventUpdateRequest(location="Union Hall"))
    assert updated.location == "Union Hall"
    assert updated.title == "Welcome Mixer"

    await event_service.register(STUDENT, event.id)
    await event_service.delete_event(ADMIN, event.id)
    assert await memory_db.count_rows("events") == 0
    assert await memory_db.count_rows("event_registrations") == 0


@pytest.mark.asyncio
async def test_get_unknown_event_is_404(event_service):
    with pytest.raises(HTTPException) as exc:
        await event_service.get_event("missing")
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_concurrent_registrations_never_exceed_capacity(recording_db):
    service = EventService(recording_db(yield_each_call=True))
    event = await service.create_event(ADMIN, _payload(capacity=1))
    students = [AuthenticatedUser(id=f"student-{n}") for n in range(5)]

    results = await asyncio.gather(
        *(service.register(student, event.id) for student in students),
        return_exceptions=True,
    )

    assert await service.registered_count(event.id) == 1
    assert results.count(1) == 1
    rejected = [r for r in results if isinstance(r, HTTPException)]
    assert len(rejected) == 4
    assert {r.detail for r in rejected} == {"event_full"}


@pytest.mark.asyncio
async def test_registering_again_on_a_full_event_is_not_rejected(event_service):
    event = await event_service.create_event(ADMIN, _payload(capacity=1))
    await event_service.register(STUDENT, event.id)

    results = await asyncio.gather(
        event_service.register(STUDENT, event.id),
        event_service.register(STUDENT, event.id),
    )
    assert results == [1, 1]


def test_update_rejects_explicit_null_for_required_fields():
    with pytest.raises(ValidationError):
        EventUpdateRequest(title=None)
    with pytest.raises(ValidationError):
        EventUpdateRequest(date=None)

    assert EventUpdateRequest(location="Union Hall").model_dump(exclude_unset=True) == {"location": "Union Hall"}
    assert EventUpdateRequest(capacity=None).model_dump(exclude_unset=True) == {"capacity": None}
