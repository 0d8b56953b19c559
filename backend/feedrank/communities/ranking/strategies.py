"""Ranking strategies for listing the posts of a community."""

from __future__ import annotations

import calendar
import heapq
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

import asyncpg

from feedrank.communities.domain import models
from feedrank.communities.domain.repo import CHRONOLOGICAL, PostMetricsProvider, PostStore
from feedrank.communities.ranking.pagination import OrderedView, PageWindow
from feedrank.settings import settings

SORT_NEW = "new"
SORT_TOP = "top"
SORT_CONTROVERSIAL = "controversial"
SORT_HOT = "hot"


def controversy_score(upvotes: int, downvotes: int) -> float:
	"""Reward large, closely balanced vote splits.

	One-sided posts score 0.0 exactly like posts without votes.
	"""
	total = upvotes + downvotes
	if total == 0:
		return 0.0
	ratio = min(upvotes, downvotes) / max(upvotes, downvotes)
	return ratio * total


def hot_score(vote_score: int, created_at: datetime, *, now: datetime) -> float:
	"""Exponential time decay with a 6-hour constant plus signed log engagement."""
	age_hours = max((now - created_at).total_seconds() / 3600.0, 0.0)
	time_decay = math.exp(-age_hours / 6.0)
	engagement = math.copysign(math.log1p(abs(vote_score)), vote_score)
	return round(time_decay + 0.05 * engagement, 6)


def _micros(value: datetime) -> int:
	# Exact integer ordering; float timestamps lose microseconds
	return calendar.timegm(value.utctimetuple()) * 1_000_000 + value.microsecond


def _rank_key(item: models.RankedPost) -> tuple[float, int, UUID]:
	return (item.score, _micros(item.post.created_at), item.post.id)


def order_ranked(items: list[models.RankedPost], *, limit: int | None = None) -> list[models.RankedPost]:
	"""Order by score, then created_at, then id, all descending.

	With ``limit`` only the leading ``limit`` items are selected (bounded top-K),
	which matches the prefix of a full sort because the key is total.
	"""
	if limit is None or limit >= len(items):
		return sorted(items, key=_rank_key, reverse=True)
	return heapq.nlargest(limit, items, key=_rank_key)


class RankingStrategy(Protocol):
	name: str

	async def rank(
		self,
		community_id: UUID,
		window: PageWindow,
		*,
		conn: asyncpg.Connection | None = None,
	) -> OrderedView:
		...


class NewStrategy:
	"""Chronological order, paginated by the store."""

	name = SORT_NEW

	def __init__(self, store: PostStore) -> None:
		self.store = store

	async def rank(
		self,
		community_id: UUID,
		window: PageWindow,
		*,
		conn: asyncpg.Connection | None = None,
	) -> OrderedView:
		records = await self.store.count_by_community(community_id, conn=conn)
		if window.offset >= records:
			# Past the last page; the offset may not even fit a bigint
			return OrderedView(records=records, items=[], offset=window.offset)
		posts = await self.store.query_by_community(
			community_id,
			order_by=CHRONOLOGICAL,
			offset=window.offset,
			limit=window.limit,
			conn=conn,
		)
		return OrderedView(records=records, items=posts, offset=window.offset)


class InMemoryStrategy(ABC):
	"""Loads every eligible post with its metrics and orders them in process."""

	name = ""

	def __init__(self, store: PostStore, metrics_provider: PostMetricsProvider) -> None:
		self.store = store
		self.metrics_provider = metrics_provider

	@abstractmethod
	def score(self, post: models.Post, metrics: models.PostMetrics) -> float:
		...

	async def rank(
		self,
		community_id: UUID,
		window: PageWindow,
		*,
		conn: asyncpg.Connection | None = None,
	) -> OrderedView:
		posts = await self.store.query_by_community(community_id, conn=conn)
		metrics_by_post = await self.metrics_provider.for_posts([post.id for post in posts], conn=conn)
		ranked: list[models.RankedPost] = []
		for post in posts:
			metrics = metrics_by_post.get(post.id) or models.PostMetrics.empty(post.id)
			ranked.append(models.RankedPost(post=post, metrics=metrics, score=self.score(post, metrics)))
		ordered = order_ranked(ranked, limit=window.end)
		return OrderedView(records=len(posts), items=[item.post for item in ordered], offset=0)


class TopStrategy(InMemoryStrategy):
	name = SORT_TOP

	def score(self, post: models.Post, metrics: models.PostMetrics) -> float:
		return float(metrics.vote_score)


class ControversialStrategy(InMemoryStrategy):
	name = SORT_CONTROVERSIAL

	def score(self, post: models.Post, metrics: models.PostMetrics) -> float:
		return controversy_score(metrics.upvote_count, metrics.downvote_count)


class HotStrategy(InMemoryStrategy):
	name = SORT_HOT

	def __init__(
		self,
		store: PostStore,
		metrics_provider: PostMetricsProvider,
		*,
		now: datetime | None = None,
	) -> None:
		super().__init__(store, metrics_provider)
		self.now = now or datetime.now(timezone.utc)

	def score(self, post: models.Post, metrics: models.PostMetrics) -> float:
		return hot_score(metrics.vote_score, post.created_at, now=self.now)


class RankingStrategySelector:
	"""Maps a free-form sort key to a strategy; never fails."""

	def __init__(
		self,
		store: PostStore,
		metrics_provider: PostMetricsProvider,
		*,
		hot_enabled: bool | None = None,
	) -> None:
		self.store = store
		self.metrics_provider = metrics_provider
		self.hot_enabled = settings.feed_hot_ranking_enabled if hot_enabled is None else hot_enabled

	def select(self, sort_by: str | None) -> RankingStrategy:
		# Keys match exactly; "TOP" or " top" fall back like any unknown value
		key = sort_by or SORT_NEW
		if key == SORT_TOP:
			return TopStrategy(self.store, self.metrics_provider)
		if key == SORT_CONTROVERSIAL:
			return ControversialStrategy(self.store, self.metrics_provider)
		if key == SORT_HOT and self.hot_enabled:
			return HotStrategy(self.store, self.metrics_provider)
		# "new", "hot" while disabled, and anything unrecognised
		return NewStrategy(self.store)


__all__ = [
	"ControversialStrategy",
	"HotStrategy",
	"InMemoryStrategy",
	"NewStrategy",
	"RankingStrategy",
	"RankingStrategySelector",
	"TopStrategy",
	"controversy_score",
	"hot_score",
	"order_ranked",
]
