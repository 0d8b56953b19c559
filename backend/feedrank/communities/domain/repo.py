"""Async repository helpers for community posts and their vote metrics."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable
from uuid import UUID

import asyncpg

from feedrank.communities.domain import models
from feedrank.infra.postgres import get_pool

CHRONOLOGICAL = "chronological"

# created_at alone is not unique; id keeps the order total across pages
_ORDER_CLAUSES = {
	CHRONOLOGICAL: "created_at DESC, id DESC",
}

_POST_COLUMNS = "id, community_id, title, type, created_at, deleted_at"


@asynccontextmanager
async def _connection(conn: asyncpg.Connection | None) -> AsyncIterator[asyncpg.Connection]:
	if conn is not None:
		yield conn
		return
	pool = await get_pool()
	async with pool.acquire() as acquired:
		yield acquired


@asynccontextmanager
async def read_snapshot() -> AsyncIterator[asyncpg.Connection]:
	"""Yield a connection inside a read-only repeatable-read transaction.

	Every query issued through the yielded connection sees the same snapshot,
	so a page and its count (or posts and their metrics) cannot drift apart
	mid-request.
	"""
	pool = await get_pool()
	async with pool.acquire() as conn:
		async with conn.transaction(isolation="repeatable_read", readonly=True):
			yield conn


class PostStore:
	"""Thin data-access layer over the post table."""

	async def query_by_community(
		self,
		community_id: UUID,
		*,
		order_by: str | None = None,
		offset: int | None = None,
		limit: int | None = None,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Post]:
		params: list[object] = [str(community_id)]
		query = f"SELECT {_POST_COLUMNS} FROM post WHERE community_id=$1 AND deleted_at IS NULL"
		if order_by is not None:
			try:
				query += f" ORDER BY {_ORDER_CLAUSES[order_by]}"
			except KeyError:
				raise ValueError(f"unsupported post order: {order_by}") from None
		if offset:
			params.append(offset)
			query += " OFFSET $%d" % len(params)
		if limit is not None:
			params.append(limit)
			query += " LIMIT $%d" % len(params)
		async with _connection(conn) as active:
			rows = await active.fetch(query, *params)
		return [models.Post.model_validate(dict(row)) for row in rows]

	async def count_by_community(
		self,
		community_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> int:
		async with _connection(conn) as active:
			value = await active.fetchval(
				"SELECT COUNT(*) FROM post WHERE community_id=$1 AND deleted_at IS NULL",
				str(community_id),
			)
		return int(value or 0)


class PostMetricsProvider:
	"""Reads the materialized post_metrics aggregate."""

	async def for_posts(
		self,
		post_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> dict[UUID, models.PostMetrics]:
		ids = [str(post_id) for post_id in post_ids]
		if not ids:
			return {}
		async with _connection(conn) as active:
			rows = await active.fetch(
				"""
				SELECT post_id, upvote_count, downvote_count, vote_score
				FROM post_metrics
				WHERE post_id = ANY($1::uuid[])
				""",
				ids,
			)
		metrics = [models.PostMetrics.model_validate(dict(row)) for row in rows]
		return {item.post_id: item for item in metrics}


__all__ = ["CHRONOLOGICAL", "PostMetricsProvider", "PostStore", "read_snapshot"]
