"""Process-wide asyncpg pool used by the post store and readiness probe."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import asyncpg

from feedrank.settings import settings

logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None
_pool_lock = asyncio.Lock()


async def _create_pool() -> asyncpg.Pool:
	pool = await asyncpg.create_pool(
		dsn=settings.postgres_url,
		min_size=settings.postgres_min_pool_size,
		max_size=settings.postgres_max_pool_size,
		command_timeout=settings.postgres_command_timeout_seconds,
		server_settings={"application_name": settings.service_name},
	)
	logger.info(
		"postgres_pool_created",
		extra={"min_size": settings.postgres_min_pool_size, "max_size": settings.postgres_max_pool_size},
	)
	return pool


async def init_pool() -> asyncpg.Pool:
	global _pool
	if _pool is not None:
		return _pool
	async with _pool_lock:
		# Concurrent first requests must not each open a pool
		if _pool is None:
			_pool = await _create_pool()
	return _pool


async def get_pool() -> asyncpg.Pool:
	return _pool if _pool is not None else await init_pool()


def set_pool(pool: Optional[asyncpg.Pool]) -> None:
	"""Install an existing pool, e.g. one owned by a test harness."""
	global _pool
	_pool = pool


async def close_pool() -> None:
	global _pool
	pool, _pool = _pool, None
	if pool is not None:
		await pool.close()
		logger.info("postgres_pool_closed")
