"""Redis connection management.

Provides a stable proxy object so imports like
`from campuslife.infra.redis import redis_client` always reference the same
instance. The underlying client can be swapped at runtime (fakeredis in tests)
without breaking previously imported references.
"""

from __future__ import annotations

import redis.asyncio as redis

from campuslife.settings import settings


class RedisProxy:
	"""Forward attribute access to an underlying Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	def __getattr__(self, item):
		return getattr(self._client, item)


_real_client = redis.from_url(settings.redis_url, decode_responses=True)
redis_client: RedisProxy = RedisProxy(_real_client)


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)
