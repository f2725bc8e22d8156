"""Redis connection management.

Provides a stable proxy object so imports like `from app.infra.redis import redis_client`
always reference the same proxy instance. The underlying client can be swapped at
runtime (e.g., to fakeredis in tests) without breaking previously imported references.

Also adds a small helper for the realtime collection layer:
- HGETALL_SORTED: read a hash and return its items ordered by field name
"""

from __future__ import annotations

import redis.asyncio as redis

from app.settings import settings


class RedisProxy:
	"""Lightweight proxy that forwards attribute access to an underlying Redis client.

	This lets us swap the real client for a FakeRedis instance in tests while keeping
	the same imported symbol across the codebase.
	"""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	async def hgetall_sorted(self, name: str) -> list[tuple[str, str]]:
		"""Return hash items ordered by field so snapshots are emitted in key order."""
		raw = await self._client.hgetall(name)
		items = [(_text(key), _text(value)) for key, value in raw.items()]
		items.sort(key=lambda item: item[0])
		return items

	# Fallback: delegate everything else to the underlying client
	def __getattr__(self, item):
		return getattr(self._client, item)


def _text(value) -> str:
	if isinstance(value, bytes):
		return value.decode("utf-8")
	return str(value)


# Create proxy with the real client by default
_real_client = redis.from_url(settings.redis_url, decode_responses=True)
redis_client: RedisProxy = RedisProxy(_real_client)


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)
