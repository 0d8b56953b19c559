"""Redis client used by the ranking cache.

Callers import the module-level ``redis_client`` proxy once; the connection
behind it is built on first use and can be replaced at runtime (fakeredis in
tests) without re-importing.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from feedrank.settings import settings


def _build_client() -> redis.Redis:
	return redis.from_url(
		settings.redis_url,
		decode_responses=True,
		socket_timeout=1.0,
		health_check_interval=30,
	)


class RedisProxy:
	"""Forwards commands to the current Redis client."""

	def __init__(self, client: Optional[redis.Redis] = None) -> None:
		self._client = client

	@property
	def client(self) -> redis.Redis:
		if self._client is None:
			self._client = _build_client()
		return self._client

	def set_client(self, client: Optional[redis.Redis]) -> None:
		self._client = client

	def __getattr__(self, item):
		return getattr(self.client, item)


redis_client = RedisProxy()


def set_redis_client(client: Optional[redis.Redis]) -> None:
	redis_client.set_client(client)


async def close_redis() -> None:
	# Nothing to close when the cache was never touched
	if redis_client._client is None:
		return
	await redis_client.client.aclose()
	redis_client.set_client(None)
