"""Redis helpers for caching ranked community feed pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from feedrank.infra.redis import redis_client

_PAGE_KEY = "feedrank:page:{community_id}:{generation}:{sort}:{page}:{limit}"
_GENERATION_KEY = "feedrank:gen:{community_id}"


@dataclass(slots=True)
class CachedPage:
	generation: int
	payload: Optional[str] = None


def _generation_key(community_id: UUID) -> str:
	return _GENERATION_KEY.format(community_id=community_id)


def _page_key(community_id: UUID, generation: int, sort: str, page: int, limit: int) -> str:
	return _PAGE_KEY.format(
		community_id=community_id,
		generation=generation,
		sort=sort,
		page=page,
		limit=limit,
	)


async def fetch_page(community_id: UUID, *, sort: str, page: int, limit: int) -> CachedPage:
	"""Return the current generation and the cached payload, if any.

	Callers must store fresh results under the returned generation so that an
	invalidation racing with the computation orphans the stale write.
	"""
	raw_generation = await redis_client.get(_generation_key(community_id))
	generation = int(raw_generation or 0)
	payload = await redis_client.get(_page_key(community_id, generation, sort, page, limit))
	return CachedPage(generation=generation, payload=payload)


async def store_page(
	community_id: UUID,
	*,
	generation: int,
	sort: str,
	page: int,
	limit: int,
	payload: str,
	ttl_seconds: int,
) -> None:
	key = _page_key(community_id, generation, sort, page, limit)
	await redis_client.set(key, payload, ex=max(1, ttl_seconds))


async def invalidate_community(community_id: UUID) -> int:
	"""Bump the community generation; every cached page of it becomes unreachable."""
	return int(await redis_client.incr(_generation_key(community_id)))


__all__ = ["CachedPage", "fetch_page", "invalidate_community", "store_page"]
