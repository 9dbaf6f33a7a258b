"""Redis connection management.

The proxy keeps one importable ``redis_client`` whose underlying client can be
swapped at runtime (e.g. for fakeredis in tests).
"""

from __future__ import annotations

import redis.asyncio as redis

from abuse_triage.settings import settings


class RedisProxy:
	"""Forwards attribute access to an underlying Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	def __getattr__(self, item):
		return getattr(self._client, item)


_real_client = redis.from_url(settings.redis_url, decode_responses=True)
redis_client: RedisProxy = RedisProxy(_real_client)


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)
