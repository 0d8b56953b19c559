"""Service layer for listing the ranked posts of a community."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from time import perf_counter
from typing import Any, Callable
from uuid import UUID

import asyncpg
from redis.exceptions import RedisError

from feedrank.communities.domain import repo as repo_module
from feedrank.communities.domain.exceptions import FeedStoreUnavailable, RankCacheUnavailable
from feedrank.communities.infra import ranking_cache
from feedrank.communities.ranking.pagination import PageResult, PageWindow, PaginationEngine
from feedrank.communities.ranking.strategies import InMemoryStrategy, RankingStrategy, RankingStrategySelector
from feedrank.communities.schemas import dto
from feedrank.obs import logging as obs_logging
from feedrank.obs import metrics as obs_metrics
from feedrank.settings import settings

logger = logging.getLogger(__name__)

SnapshotFactory = Callable[[], AbstractAsyncContextManager[Any]]

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)
_CACHE_ERRORS = (RedisError, OSError, ValueError)


def _page_to_response(result: PageResult) -> dto.CommunityPostPage:
	return dto.CommunityPostPage(
		pagination=dto.PaginationMeta(
			current=result.current,
			limit=result.limit,
			records=result.records,
			pages=result.pages,
		),
		data=[
			dto.PostSummary(id=post.id, type=post.type, title=post.title, created_at=post.created_at)
			for post in result.data
		],
	)


class CommunityFeedService:
	"""Selects a ranking strategy, reads one snapshot, and paginates the result."""

	def __init__(
		self,
		store: repo_module.PostStore | None = None,
		metrics_provider: repo_module.PostMetricsProvider | None = None,
		*,
		selector: RankingStrategySelector | None = None,
		pagination: PaginationEngine | None = None,
		snapshot: SnapshotFactory | None = None,
		cache_enabled: bool | None = None,
		cache_ttl_seconds: int | None = None,
	) -> None:
		self.store = store or repo_module.PostStore()
		self.metrics_provider = metrics_provider or repo_module.PostMetricsProvider()
		self.selector = selector or RankingStrategySelector(self.store, self.metrics_provider)
		self.pagination = pagination or PaginationEngine()
		self.snapshot = snapshot or repo_module.read_snapshot
		self.cache_enabled = settings.feed_rank_cache_enabled if cache_enabled is None else cache_enabled
		self.cache_ttl_seconds = (
			settings.feed_rank_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
		)

	async def list_posts(
		self,
		community_id: UUID,
		*,
		page: int = 1,
		limit: int | None = None,
		sort_by: str | None = None,
	) -> dto.CommunityPostPage:
		limit = settings.feed_default_page_size if limit is None else limit
		window = self.pagination.window(page, limit)
		strategy = self.selector.select(sort_by)
		token = obs_logging.bind_context(community_id=str(community_id), sort=strategy.name)
		try:
			return await self._serve(community_id, window, strategy, sort_by)
		finally:
			obs_logging.reset_context(token)

	async def _serve(
		self,
		community_id: UUID,
		window: PageWindow,
		strategy: RankingStrategy,
		sort_by: str | None,
	) -> dto.CommunityPostPage:
		generation: int | None = None
		if self.cache_enabled:
			cached = await self._cache_lookup(community_id, strategy.name, window)
			if cached is not None:
				if cached.payload is not None:
					obs_metrics.feed_rank_cache("hit")
					return dto.CommunityPostPage.model_validate_json(cached.payload)
				obs_metrics.feed_rank_cache("miss")
				generation = cached.generation

		start = perf_counter()
		try:
			async with self.snapshot() as conn:
				view = await strategy.rank(community_id, window, conn=conn)
		except _STORE_ERRORS as exc:
			logger.error("feed_store_error", exc_info=True)
			raise FeedStoreUnavailable() from exc
		result = self.pagination.paginate(window, view)
		elapsed_ms = (perf_counter() - start) * 1000.0

		candidates = view.records if isinstance(strategy, InMemoryStrategy) else len(view.items)
		obs_metrics.observe_feed_rank(strategy.name, candidates=candidates, elapsed_ms=elapsed_ms)
		logger.info(
			"feed_rank_request",
			extra={
				"sort_requested": sort_by,
				"page": window.page,
				"limit": window.limit,
				"records": result.records,
				"returned": len(result.data),
				"elapsed_ms": round(elapsed_ms, 3),
			},
		)

		response = _page_to_response(result)
		if generation is not None:
			await self._cache_store(community_id, strategy.name, window, generation, response)
		return response

	async def invalidate_rank_cache(self, community_id: UUID) -> dto.RankCacheInvalidateResponse:
		try:
			generation = await ranking_cache.invalidate_community(community_id)
		except _CACHE_ERRORS as exc:
			obs_metrics.feed_rank_cache("error")
			logger.error(
				"feed_rank_cache_error",
				extra={"op": "invalidate", "community_id": str(community_id)},
				exc_info=True,
			)
			raise RankCacheUnavailable() from exc
		obs_metrics.feed_rank_cache("invalidate")
		logger.info(
			"feed_rank_cache_invalidated",
			extra={"community_id": str(community_id), "generation": generation},
		)
		return dto.RankCacheInvalidateResponse(community_id=community_id, generation=generation)

	async def _cache_lookup(
		self,
		community_id: UUID,
		sort: str,
		window: PageWindow,
	) -> ranking_cache.CachedPage | None:
		try:
			return await ranking_cache.fetch_page(community_id, sort=sort, page=window.page, limit=window.limit)
		except _CACHE_ERRORS:
			obs_metrics.feed_rank_cache("error")
			logger.warning("feed_rank_cache_error", extra={"op": "fetch"}, exc_info=True)
			return None

	async def _cache_store(
		self,
		community_id: UUID,
		sort: str,
		window: PageWindow,
		generation: int,
		response: dto.CommunityPostPage,
	) -> None:
		try:
			await ranking_cache.store_page(
				community_id,
				generation=generation,
				sort=sort,
				page=window.page,
				limit=window.limit,
				payload=response.model_dump_json(),
				ttl_seconds=self.cache_ttl_seconds,
			)
		except _CACHE_ERRORS:
			obs_metrics.feed_rank_cache("error")
			logger.warning("feed_rank_cache_error", extra={"op": "store"}, exc_info=True)


__all__ = ["CommunityFeedService"]
