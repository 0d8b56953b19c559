import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from feedrank.communities.domain import models, repo
from feedrank.communities.ranking.pagination import PaginationEngine
from feedrank.communities.ranking.strategies import RankingStrategySelector
from feedrank.communities.services.feed_service import CommunityFeedService
from feedrank.infra import postgres
from feedrank.main import app
from feedrank.settings import settings

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryPostStore:
	"""Mirrors the SQL semantics of PostStore over a list of posts."""

	def __init__(self, posts=None) -> None:
		self.posts: list[models.Post] = list(posts or [])
		self.calls: list[dict] = []
		self.fail_with: Exception | None = None

	def _eligible(self, community_id: UUID) -> list[models.Post]:
		return [post for post in self.posts if post.community_id == community_id and post.deleted_at is None]

	async def query_by_community(self, community_id, *, order_by=None, offset=None, limit=None, conn=None):
		self.calls.append({"op": "query", "order_by": order_by, "offset": offset, "limit": limit, "conn": conn})
		if self.fail_with is not None:
			raise self.fail_with
		rows = self._eligible(community_id)
		if order_by == repo.CHRONOLOGICAL:
			rows.sort(key=lambda post: (post.created_at, post.id), reverse=True)
		if offset:
			rows = rows[offset:]
		if limit is not None:
			rows = rows[:limit]
		return rows

	async def count_by_community(self, community_id, *, conn=None):
		self.calls.append({"op": "count", "conn": conn})
		return len(self._eligible(community_id))


class InMemoryMetricsProvider:
	def __init__(self, metrics=None) -> None:
		self.metrics: dict[UUID, models.PostMetrics] = dict(metrics or {})
		self.requested: list[list[UUID]] = []

	def set(self, post_id: UUID, *, up: int = 0, down: int = 0, score: int | None = None) -> None:
		self.metrics[post_id] = models.PostMetrics(
			post_id=post_id,
			upvote_count=up,
			downvote_count=down,
			vote_score=up - down if score is None else score,
		)

	async def for_posts(self, post_ids, *, conn=None):
		ids = list(post_ids)
		self.requested.append(ids)
		return {post_id: self.metrics[post_id] for post_id in ids if post_id in self.metrics}


@asynccontextmanager
async def _stub_snapshot():
	yield "snapshot-conn"


def make_post(
	community_id: UUID,
	*,
	minutes_ago: int = 0,
	title: str = "post",
	post_type: str = "text",
	post_id: UUID | None = None,
	deleted: bool = False,
	created_at: datetime | None = None,
) -> models.Post:
	created = created_at or BASE_TIME - timedelta(minutes=minutes_ago)
	return models.Post(
		id=post_id or uuid4(),
		community_id=community_id,
		title=title,
		type=post_type,
		created_at=created,
		deleted_at=created if deleted else None,
	)


def build_feed_service(store, metrics_provider, *, hot_enabled=False, cache_enabled=False, max_limit=None):
	return CommunityFeedService(
		store,
		metrics_provider,
		selector=RankingStrategySelector(store, metrics_provider, hot_enabled=hot_enabled),
		pagination=PaginationEngine(max_limit=max_limit),
		snapshot=_stub_snapshot,
		cache_enabled=cache_enabled,
		cache_ttl_seconds=60,
	)


@pytest.fixture()
def community_id() -> UUID:
	return uuid4()


@pytest.fixture()
def post_store() -> InMemoryPostStore:
	return InMemoryPostStore()


@pytest.fixture()
def metrics_provider() -> InMemoryMetricsProvider:
	return InMemoryMetricsProvider()


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from feedrank.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	original_env = settings.environment
	original_token = settings.obs_admin_token
	settings.environment = "dev"
	settings.obs_admin_token = "test-admin-token"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.obs_admin_token = original_token


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
