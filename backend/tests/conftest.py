import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from campuslife.api.deps import get_today
from campuslife.domain.search.session import registry as search_sessions
from campuslife.infra import postgres
from campuslife.infra.memory_query import MemoryQueryClient
from campuslife.infra.query import QueryError, set_query_client
from campuslife.main import app
from campuslife.settings import settings

TODAY = date(2026, 3, 14)


def days(n: int) -> date:
	return TODAY + timedelta(days=n)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from campuslife.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def memory_db():
	"""Every test gets a fresh in-process store behind get_query_client()."""
	client = MemoryQueryClient()
	set_query_client(client)
	search_sessions.reset()
	try:
		yield client
	finally:
		set_query_client(None)
		search_sessions.reset()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Roles headers, which are only
	accepted in dev mode.
	"""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture(autouse=True)
def fixed_today():
	app.dependency_overrides[get_today] = lambda: TODAY
	try:
		yield TODAY
	finally:
		app.dependency_overrides.pop(get_today, None)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client


class RecordingQueryClient:
	"""Wrap a query client, recording reads and failing on chosen tables.

	With ``yield_each_call`` every call gives up the event loop first, so
	gathered coroutines interleave the way they do against a real pool.
	"""

	def __init__(self, inner, *, fail_on=(), yield_each_call=False):
		self._inner = inner
		self.fail_on = set(fail_on)
		self.yield_each_call = yield_each_call
		self.calls = []

	async def _check(self, table):
		if self.yield_each_call:
			await asyncio.sleep(0)
		if table in self.fail_on:
			raise QueryError(table, "connection reset")

	async def query_rows(self, table, filters=(), **kwargs):
		self.calls.append((table, tuple(filters), kwargs))
		await self._check(table)
		return await self._inner.query_rows(table, filters, **kwargs)

	async def count_rows(self, table, filters=()):
		await self._check(table)
		return await self._inner.count_rows(table, filters)

	async def insert_row(self, table, values):
		await self._check(table)
		return await self._inner.insert_row(table, values)

	async def insert_row_capped(self, table, values, *, scope, cap):
		await self._check(table)
		return await self._inner.insert_row_capped(table, values, scope=scope, cap=cap)

	async def update_rows(self, table, filters, values):
		await self._check(table)
		return await self._inner.update_rows(table, filters, values)

	async def delete_rows(self, table, filters):
		await self._check(table)
		return await self._inner.delete_rows(table, filters)

	def tables_read(self):
		return [call[0] for call in self.calls]


@pytest.fixture
def recording_db(memory_db):
	def _make(fail_on=(), yield_each_call=False):
		return RecordingQueryClient(memory_db, fail_on=fail_on, yield_each_call=yield_each_call)

	return _make
