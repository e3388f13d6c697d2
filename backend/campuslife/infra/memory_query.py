"""In-process implementation of the row-query interface.

Used when ``DATA_BACKEND=memory`` and throughout the test-suite. Rows are kept
as plain dicts per table; every read returns copies.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from campuslife.infra.query import (
	ON_DELETE,
	TABLES,
	UNIQUE_KEYS,
	AnyOf,
	DuplicateRow,
	Eq,
	Filter,
	Gte,
	ILike,
	In,
	Order,
	check_columns,
	filter_columns,
)

_TIMESTAMP_COLUMNS = ("created_at", "joined_at", "registered_at")


def like_to_regex(pattern: str) -> re.Pattern[str]:
	"""Translate a LIKE pattern (with backslash escapes) to a compiled regex."""

	parts: list[str] = []
	escaped = False
	for char in pattern:
		if escaped:
			parts.append(re.escape(char))
			escaped = False
		elif char == "\\":
			escaped = True
		elif char == "%":
			parts.append(".*")
		elif char == "_":
			parts.append(".")
		else:
			parts.append(re.escape(char))
	if escaped:
		parts.append(re.escape("\\"))
	return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _matches(row: Mapping[str, Any], item: Filter) -> bool:
	if isinstance(item, AnyOf):
		return any(_matches(row, inner) for inner in item.filters)
	value = row.get(item.column)
	if isinstance(item, Eq):
		return value == item.value
	if isinstance(item, In):
		return value in item.values
	if isinstance(item, Gte):
		return value is not None and value >= item.value
	if isinstance(item, ILike):
		return isinstance(value, str) and like_to_regex(item.pattern).fullmatch(value) is not None
	raise TypeError(f"unsupported filter: {item!r}")


def _matches_all(row: Mapping[str, Any], filters: Sequence[Filter]) -> bool:
	return all(_matches(row, item) for item in filters)


def _sorted(rows: list[dict[str, Any]], order: Sequence[Order]) -> list[dict[str, Any]]:
	# Apply keys from least to most significant; sort() is stable. NULLs sort last.
	for item in reversed(order):
		present = [r for r in rows if r.get(item.column) is not None]
		missing = [r for r in rows if r.get(item.column) is None]
		present.sort(key=lambda r: r[item.column], reverse=item.descending)
		rows = present + missing
	return rows


class MemoryQueryClient:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._tables: dict[str, list[dict[str, Any]]] = {name: [] for name in TABLES}

	async def reset(self) -> None:
		async with self._lock:
			for rows in self._tables.values():
				rows.clear()

	async def seed(self, table: str, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
		"""Insert rows as-is (bypassing unique checks); returns the stored copies."""

		stored: list[dict[str, Any]] = []
		async with self._lock:
			for row in rows:
				check_columns(table, row.keys())
				record = self._with_defaults(table, row)
				self._tables[table].append(record)
				stored.append(dict(record))
		return stored

	@staticmethod
	def _with_defaults(table: str, values: Mapping[str, Any]) -> dict[str, Any]:
		record = {column: None for column in TABLES[table]}
		if "id" in record:
			record["id"] = str(uuid4())
		for column in _TIMESTAMP_COLUMNS:
			if column in record:
				record[column] = datetime.now(timezone.utc)
		if table == "profiles":
			record["is_admin"] = False
			record["interests"] = []
		record.update(values)
		return record

	def _check_unique(self, table: str, record: Mapping[str, Any], *, ignore: Optional[dict] = None) -> None:
		for key in UNIQUE_KEYS.get(table, ()):
			wanted = tuple(record.get(column) for column in key)
			if any(v is None for v in wanted):
				continue
			for existing in self._tables[table]:
				if existing is ignore:
					continue
				if tuple(existing.get(column) for column in key) == wanted:
					raise DuplicateRow(table, "duplicate_row")

	async def query_rows(
		self,
		table: str,
		filters: Sequence[Filter] = (),
		*,
		columns: Optional[Sequence[str]] = None,
		order: Sequence[Order] = (),
		limit: Optional[int] = None,
	) -> list[dict[str, Any]]:
		check_columns(table, [*(columns or ()), *filter_columns(filters), *(o.column for o in order)])
		async with self._lock:
			rows = [row for row in self._tables[table] if _matches_all(row, filters)]
		rows = _sorted(rows, order)
		if limit is not None:
			rows = rows[: max(0, int(limit))]
		if columns:
			return [{column: row.get(column) for column in columns} for row in rows]
		return [dict(row) for row in rows]

	async def count_rows(self, table: str, filters: Sequence[Filter] = ()) -> int:
		check_columns(table, filter_columns(filters))
		async with self._lock:
			return sum(1 for row in self._tables[table] if _matches_all(row, filters))

	async def insert_row(self, table: str, values: Mapping[str, Any]) -> dict[str, Any]:
		check_columns(table, values.keys())
		async with self._lock:
			record = self._with_defaults(table, values)
			self._check_unique(table, record)
			self._tables[table].append(record)
			return dict(record)

	async def insert_row_capped(
		self,
		table: str,
		values: Mapping[str, Any],
		*,
		scope: Sequence[Filter],
		cap: int,
	) -> Optional[dict[str, Any]]:
		check_columns(table, [*values.keys(), *filter_columns(scope)])
		async with self._lock:
			if sum(1 for row in self._tables[table] if _matches_all(row, scope)) >= cap:
				return None
			record = self._with_defaults(table, values)
			self._check_unique(table, record)
			self._tables[table].append(record)
			return dict(record)

	async def update_rows(
		self,
		table: str,
		filters: Sequence[Filter],
		values: Mapping[str, Any],
	) -> list[dict[str, Any]]:
		check_columns(table, [*values.keys(), *filter_columns(filters)])
		updated: list[dict[str, Any]] = []
		async with self._lock:
			for row in self._tables[table]:
				if not _matches_all(row, filters):
					continue
				candidate = {**row, **values}
				self._check_unique(table, candidate, ignore=row)
				row.update(values)
				updated.append(dict(row))
		return updated

	async def delete_rows(self, table: str, filters: Sequence[Filter]) -> int:
		check_columns(table, filter_columns(filters))
		async with self._lock:
			return self._delete(table, lambda row: _matches_all(row, filters))

	def _delete(self, table: str, predicate: Callable[[Mapping[str, Any]], bool]) -> int:
		"""Remove matching rows and apply ON_DELETE to their children. Caller holds the lock."""

		rows = self._tables[table]
		removed = [row for row in rows if predicate(row)]
		if not removed:
			return 0
		rows[:] = [row for row in rows if not predicate(row)]
		parent_ids = {row["id"] for row in removed if row.get("id") is not None}
		for child, column, action in ON_DELETE.get(table, ()):
			if action == "cascade":
				self._delete(child, lambda row, column=column: row.get(column) in parent_ids)
			else:
				for row in self._tables[child]:
					if row.get(column) in parent_ids:
						row[column] = None
		return len(removed)
