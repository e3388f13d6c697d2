"""Postgres implementation of the row-query interface."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Mapping, Optional, Sequence
from uuid import UUID

import asyncpg

from campuslife.infra import postgres
from campuslife.infra.query import (
	AnyOf,
	DuplicateRow,
	Eq,
	Filter,
	Gte,
	ILike,
	In,
	InvalidValue,
	Order,
	QueryError,
	check_columns,
	check_table,
	filter_columns,
)

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _quote(identifier: str) -> str:
	return f'"{identifier}"'


def _compile_filter(item: Filter, params: list[Any]) -> str:
	if isinstance(item, AnyOf):
		if not item.filters:
			return "FALSE"
		return "(" + " OR ".join(_compile_filter(inner, params) for inner in item.filters) + ")"
	column = _quote(item.column)
	if isinstance(item, Eq):
		if item.value is None:
			return f"{column} IS NULL"
		params.append(item.value)
		return f"{column} = ${len(params)}"
	if isinstance(item, In):
		params.append(list(item.values))
		return f"{column} = ANY(${len(params)})"
	if isinstance(item, Gte):
		params.append(item.value)
		return f"{column} >= ${len(params)}"
	if isinstance(item, ILike):
		params.append(item.pattern)
		return f"{column} ILIKE ${len(params)}"
	raise TypeError(f"unsupported filter: {item!r}")


def compile_where(filters: Sequence[Filter], params: list[Any]) -> str:
	if not filters:
		return ""
	return " WHERE " + " AND ".join(_compile_filter(item, params) for item in filters)


def _compile_order(order: Sequence[Order]) -> str:
	if not order:
		return ""
	parts = [f"{_quote(item.column)} {'DESC' if item.descending else 'ASC'}" for item in order]
	return " ORDER BY " + ", ".join(parts)


@contextmanager
def _translate_errors(table: str) -> Iterator[None]:
	try:
		yield
	except asyncpg.UniqueViolationError as exc:
		raise DuplicateRow(table, "duplicate_row") from exc
	except (asyncpg.InvalidTextRepresentationError, ValueError) as exc:
		raise InvalidValue(table, "invalid_value") from exc
	except _BACKEND_ERRORS as exc:
		logger.warning("query.failed table=%s error=%s", table, exc.__class__.__name__)
		raise QueryError(table, str(exc) or exc.__class__.__name__) from exc


def _row_to_dict(record: asyncpg.Record) -> dict[str, Any]:
	row = dict(record)
	for key, value in row.items():
		if isinstance(value, UUID):
			row[key] = str(value)
	return row


class PostgresQueryClient:
	"""Compile filters to parameterised SQL and run them on the shared pool."""

	def __init__(self, pool_factory: Optional[Callable[[], Awaitable[asyncpg.Pool]]] = None) -> None:
		self._pool_factory = pool_factory or postgres.get_pool

	async def _run(self, table: str, method: str, sql: str, params: list[Any]) -> Any:
		with _translate_errors(table):
			pool = await self._pool_factory()
			async with pool.acquire() as conn:
				return await getattr(conn, method)(sql, *params)

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
		params: list[Any] = []
		selected = ", ".join(_quote(c) for c in columns) if columns else "*"
		sql = f"SELECT {selected} FROM {_quote(table)}{compile_where(filters, params)}{_compile_order(order)}"
		if limit is not None:
			params.append(int(limit))
			sql += f" LIMIT ${len(params)}"
		records = await self._run(table, "fetch", sql, params)
		return [_row_to_dict(record) for record in records]

	async def count_rows(self, table: str, filters: Sequence[Filter] = ()) -> int:
		check_columns(table, filter_columns(filters))
		params: list[Any] = []
		sql = f"SELECT COUNT(*) FROM {_quote(table)}{compile_where(filters, params)}"
		value = await self._run(table, "fetchval", sql, params)
		return int(value or 0)

	async def insert_row(self, table: str, values: Mapping[str, Any]) -> dict[str, Any]:
		check_columns(table, values.keys())
		columns = list(values.keys())
		params = [values[c] for c in columns]
		placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
		sql = (
			f"INSERT INTO {_quote(table)} ({', '.join(_quote(c) for c in columns)}) "
			f"VALUES ({placeholders}) RETURNING *"
		)
		record = await self._run(table, "fetchrow", sql, params)
		return _row_to_dict(record)

	async def insert_row_capped(
		self,
		table: str,
		values: Mapping[str, Any],
		*,
		scope: Sequence[Filter],
		cap: int,
	) -> Optional[dict[str, Any]]:
		check_columns(table, [*values.keys(), *filter_columns(scope)])
		count_params: list[Any] = []
		where = compile_where(scope, count_params)
		count_sql = f"SELECT COUNT(*) FROM {_quote(table)}{where}"
		columns = list(values.keys())
		placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
		insert_sql = (
			f"INSERT INTO {_quote(table)} ({', '.join(_quote(c) for c in columns)}) "
			f"VALUES ({placeholders}) RETURNING *"
		)
		# Capped inserts into the same scope serialise on one transaction-scoped lock
		lock_key = f"{table}{where}:{count_params!r}"
		with _translate_errors(table):
			pool = await self._pool_factory()
			async with pool.acquire() as conn:
				async with conn.transaction():
					await conn.execute("SELECT pg_advisory_xact_lock(hashtextextended($1, 0))", lock_key)
					count = await conn.fetchval(count_sql, *count_params)
					if int(count or 0) >= cap:
						return None
					record = await conn.fetchrow(insert_sql, *(values[c] for c in columns))
		return _row_to_dict(record)

	async def update_rows(
		self,
		table: str,
		filters: Sequence[Filter],
		values: Mapping[str, Any],
	) -> list[dict[str, Any]]:
		if not values:
			return await self.query_rows(table, filters)
		check_columns(table, [*values.keys(), *filter_columns(filters)])
		params: list[Any] = []
		assignments = []
		for column, value in values.items():
			params.append(value)
			assignments.append(f"{_quote(column)} = ${len(params)}")
		sql = f"UPDATE {_quote(table)} SET {', '.join(assignments)}{compile_where(filters, params)} RETURNING *"
		records = await self._run(table, "fetch", sql, params)
		return [_row_to_dict(record) for record in records]

	async def delete_rows(self, table: str, filters: Sequence[Filter]) -> int:
		check_table(table)
		check_columns(table, filter_columns(filters))
		params: list[Any] = []
		sql = f"DELETE FROM {_quote(table)}{compile_where(filters, params)}"
		status = await self._run(table, "execute", sql, params)
		try:
			return int(str(status).rsplit(" ", 1)[-1])
		except ValueError:
			return 0
