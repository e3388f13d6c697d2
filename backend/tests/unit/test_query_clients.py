from datetime import date

import pytest

from campuslife.infra.memory_query import like_to_regex
from campuslife.infra.pg_query import compile_where
from campuslife.infra.query import (
	AnyOf,
	DuplicateRow,
	Eq,
	Gte,
	ILike,
	In,
	Order,
	check_columns,
	contains_pattern,
)


def test_contains_pattern_escapes_like_metacharacters():
	assert contains_pattern("hack") == "%hack%"
	assert contains_pattern("50%_off\\") == "%50\\%\\_off\\\\%"


@pytest.mark.parametrize(
	"pattern,text,expected",
	[
		("%hack%", "Hackathon", True),
		("%HACK%", "weekend hackathon", True),
		("%hack%", "Hike", False),
		("h_ke", "hike", True),
		("%50\\%%", "50% off", True),
		("%50\\%%", "500 off", False),
	],
)
def test_like_to_regex(pattern, text, expected):
	assert (like_to_regex(pattern).fullmatch(text) is not None) is expected


def test_compile_where_builds_parameterised_sql():
	params = []
	sql = compile_where(
		[
			AnyOf(ILike("title", "%a%"), ILike("description", "%a%")),
			Gte("date", date(2026, 1, 1)),
			In("category", ["music", "arts"]),
			Eq("club_id", None),
		],
		params,
	)
	assert sql == (
		' WHERE ("title" ILIKE $1 OR "description" ILIKE $2) AND "date" >= $3'
		' AND "category" = ANY($4) AND "club_id" IS NULL'
	)
	assert params == ["%a%", "%a%", date(2026, 1, 1), ["music", "arts"]]


def test_unknown_columns_are_rejected():
	with pytest.raises(ValueError):
		check_columns("events", ["title; DROP TABLE events"])
	with pytest.raises(ValueError):
		check_columns("users", ["id"])


@pytest.mark.asyncio
async def test_memory_client_orders_with_nulls_last_and_limits(memory_db):
	await memory_db.seed(
		"events",
		[
			{"title": "b", "date": date(2026, 1, 2)},
			{"title": "a", "date": date(2026, 1, 1), "category": "x"},
			{"title": "c", "date": date(2026, 1, 3), "category": "y"},
		],
	)
	rows = await memory_db.query_rows("events", order=[Order("category", descending=True)])
	assert [r["title"] for r in rows] == ["c", "a", "b"]

	rows = await memory_db.query_rows("events", [Gte("date", date(2026, 1, 2))], order=[Order("date")], limit=1)
	assert [r["title"] for r in rows] == ["b"]


@pytest.mark.asyncio
async def test_memory_client_enforces_unique_keys(memory_db):
	await memory_db.insert_row("club_memberships", {"club_id": "c1", "user_id": "u1"})
	with pytest.raises(DuplicateRow):
		await memory_db.insert_row("club_memberships", {"club_id": "c1", "user_id": "u1"})
	assert await memory_db.count_rows("club_memberships") == 1


@pytest.mark.asyncio
async def test_memory_client_returns_copies(memory_db):
	[row] = await memory_db.seed("clubs", [{"name": "Original"}])
	row["name"] = "Mutated"
	fetched = await memory_db.query_rows("clubs", [Eq("id", row["id"])], columns=["name"])
	assert fetched == [{"name": "Original"}]


@pytest.mark.asyncio
async def test_memory_client_capped_insert_stops_at_cap(memory_db):
	scope = [Eq("event_id", "e1")]
	first = await memory_db.insert_row_capped("event_registrations", {"event_id": "e1", "user_id": "u1"}, scope=scope, cap=1)
	assert first is not None and first["user_id"] == "u1"

	second = await memory_db.insert_row_capped("event_registrations", {"event_id": "e1", "user_id": "u2"}, scope=scope, cap=1)
	assert second is None
	assert await memory_db.count_rows("event_registrations") == 1


@pytest.mark.asyncio
async def test_memory_client_applies_foreign_key_actions(memory_db):
	[club] = await memory_db.seed("clubs", [{"name": "Chess"}])
	[event] = await memory_db.seed("events", [{"title": "Open night", "date": date(2026, 3, 20), "club_id": club["id"]}])
	await memory_db.seed("club_memberships", [{"club_id": club["id"], "user_id": "u1"}])
	await memory_db.seed("event_registrations", [{"event_id": event["id"], "user_id": "u1"}])

	assert await memory_db.delete_rows("clubs", [Eq("id", club["id"])]) == 1
	assert await memory_db.count_rows("club_memberships") == 0
	[detached] = await memory_db.query_rows("events")
	assert detached["club_id"] is None
	assert await memory_db.count_rows("event_registrations") == 1

	await memory_db.delete_rows("events", [Eq("id", event["id"])])
	assert await memory_db.count_rows("event_registrations") == 0
