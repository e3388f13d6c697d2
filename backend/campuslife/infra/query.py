"""Abstract row-query interface shared by every domain service.

Services never write SQL themselves: they describe a read or write with a
table name, a tuple of filters, an ordering and a limit, and hand it to the
active ``QueryClient``. Two clients implement the interface: one backed by
Postgres (``pg_query``) and one that keeps rows in process (``memory_query``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence, Union

from campuslife.settings import settings


@dataclass(frozen=True, slots=True)
class Eq:
	column: str
	value: Any


@dataclass(frozen=True, slots=True)
class In:
	column: str
	values: tuple[Any, ...]

	def __init__(self, column: str, values: Iterable[Any]) -> None:
		object.__setattr__(self, "column", column)
		object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True, slots=True)
class Gte:
	column: str
	value: Any


@dataclass(frozen=True, slots=True)
class ILike:
	"""Case-insensitive LIKE match; ``%`` and ``_`` are wildcards, ``\\`` escapes."""

	column: str
	pattern: str


@dataclass(frozen=True, slots=True)
class AnyOf:
	"""OR of the wrapped filters."""

	filters: tuple["Filter", ...]

	def __init__(self, *filters: "Filter") -> None:
		object.__setattr__(self, "filters", tuple(filters))


Filter = Union[Eq, In, Gte, ILike, AnyOf]


@dataclass(frozen=True, slots=True)
class Order:
	column: str
	descending: bool = False


class QueryError(Exception):
	"""Raised when the backing store fails to answer a query."""

	def __init__(self, table: str, message: str) -> None:
		super().__init__(f"{table}: {message}")
		self.table = table
		self.message = message


class DuplicateRow(QueryError):
	"""Raised when an insert collides with a unique key."""


class InvalidValue(QueryError):
	"""Raised when a filter or column value cannot be coerced to the column type."""


# Columns each table exposes. Names outside this registry are rejected before
# any SQL is built.
TABLES: dict[str, tuple[str, ...]] = {
	"profiles": (
		"id",
		"email",
		"display_name",
		"password_hash",
		"is_admin",
		"interests",
		"created_at",
	),
	"clubs": (
		"id",
		"name",
		"description",
		"category",
		"meeting_time",
		"location",
		"email",
		"website",
		"image_url",
		"created_by",
		"created_at",
	),
	"events": (
		"id",
		"club_id",
		"title",
		"description",
		"date",
		"time",
		"location",
		"category",
		"image_url",
		"capacity",
		"created_by",
		"created_at",
	),
	"announcements": (
		"id",
		"title",
		"content",
		"created_by",
		"created_at",
	),
	"club_memberships": ("club_id", "user_id", "joined_at"),
	"event_registrations": ("event_id", "user_id", "registered_at"),
}

UNIQUE_KEYS: dict[str, tuple[tuple[str, ...], ...]] = {
	"profiles": (("id",), ("email",)),
	"clubs": (("id",),),
	"events": (("id",),),
	"announcements": (("id",),),
	"club_memberships": (("club_id", "user_id"),),
	"event_registrations": (("event_id", "user_id"),),
}

# What deleting a parent row does to rows that reference it, mirroring the
# foreign keys in infra/migrations: (child table, column, "cascade" | "set_null").
ON_DELETE: dict[str, tuple[tuple[str, str, str], ...]] = {
	"profiles": (
		("club_memberships", "user_id", "cascade"),
		("event_registrations", "user_id", "cascade"),
		("clubs", "created_by", "set_null"),
		("events", "created_by", "set_null"),
		("announcements", "created_by", "set_null"),
	),
	"clubs": (
		("club_memberships", "club_id", "cascade"),
		("events", "club_id", "set_null"),
	),
	"events": (("event_registrations", "event_id", "cascade"),),
}


def check_table(table: str) -> tuple[str, ...]:
	try:
		return TABLES[table]
	except KeyError:
		raise ValueError(f"unknown table: {table}") from None


def check_columns(table: str, columns: Iterable[str]) -> None:
	known = check_table(table)
	for column in columns:
		if column not in known:
			raise ValueError(f"unknown column: {table}.{column}")


def filter_columns(filters: Iterable[Filter]) -> list[str]:
	columns: list[str] = []
	for item in filters:
		if isinstance(item, AnyOf):
			columns.extend(filter_columns(item.filters))
		else:
			columns.append(item.column)
	return columns


def escape_like(text: str) -> str:
	return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(text: str) -> str:
	"""Wrap free text as a substring pattern, escaping LIKE metacharacters."""

	return f"%{escape_like(text)}%"


class QueryClient(Protocol):
	async def query_rows(
		self,
		table: str,
		filters: Sequence[Filter] = (),
		*,
		columns: Optional[Sequence[str]] = None,
		order: Sequence[Order] = (),
		limit: Optional[int] = None,
	) -> list[dict[str, Any]]: ...

	async def count_rows(self, table: str, filters: Sequence[Filter] = ()) -> int: ...

	async def insert_row(self, table: str, values: Mapping[str, Any]) -> dict[str, Any]: ...

	async def insert_row_capped(
		self,
		table: str,
		values: Mapping[str, Any],
		*,
		scope: Sequence[Filter],
		cap: int,
	) -> Optional[dict[str, Any]]:
		"""Insert only while fewer than ``cap`` rows match ``scope``; None when full.

		The count and the insert are atomic with respect to other capped inserts
		on the same table and scope.
		"""
		...

	async def update_rows(
		self,
		table: str,
		filters: Sequence[Filter],
		values: Mapping[str, Any],
	) -> list[dict[str, Any]]: ...

	async def delete_rows(self, table: str, filters: Sequence[Filter]) -> int: ...


_client: Optional[QueryClient] = None


def get_query_client() -> QueryClient:
	"""Return the process-wide client, building it from settings on first use."""

	global _client
	if _client is None:
		if settings.uses_memory_backend():
			from campuslife.infra.memory_query import MemoryQueryClient

			_client = MemoryQueryClient()
		else:
			from campuslife.infra.pg_query import PostgresQueryClient

			_client = PostgresQueryClient()
	return _client


def set_query_client(client: Optional[QueryClient]) -> None:
	global _client
	_client = client


__all__ = [
	"AnyOf",
	"DuplicateRow",
	"InvalidValue",
	"Eq",
	"Filter",
	"Gte",
	"ILike",
	"In",
	"ON_DELETE",
	"Order",
	"QueryClient",
	"QueryError",
	"TABLES",
	"contains_pattern",
	"escape_like",
	"get_query_client",
	"set_query_client",
]
