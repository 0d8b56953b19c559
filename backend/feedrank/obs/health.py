"""Liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Tuple

from feedrank.infra import postgres
from feedrank.infra.redis import redis_client
from feedrank.obs import metrics
from feedrank.settings import settings

LOGGER = logging.getLogger(__name__)


async def _probe(
	name: str,
	check: Callable[[], Awaitable[Any]],
	mark: Callable[..., None],
	timeout: float,
) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(check(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		mark(False)
		LOGGER.warning("readiness_probe_failed", extra={"dependency": name}, exc_info=True)
		return {"ok": False, "error": type(exc).__name__}
	latency = perf_counter() - start
	mark(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _select_one() -> None:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	return await _probe("postgres", _select_one, metrics.mark_postgres, timeout)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	return await _probe("redis", redis_client.ping, metrics.mark_redis, timeout)


async def liveness() -> Dict[str, Any]:
	return {"status": "ok", "service": settings.service_name}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	checks: Dict[str, Any] = {"postgres": await _postgres_status()}
	# Redis only backs the optional ranking cache
	if settings.feed_rank_cache_enabled:
		checks["redis"] = await _redis_status()
	ok = all(check["ok"] for check in checks.values())
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": checks}
