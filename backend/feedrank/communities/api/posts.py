"""Post listing routes for communities."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from feedrank.api.ops import require_admin
from feedrank.communities.api._errors import to_http_error
from feedrank.communities.domain.exceptions import CommunityError
from feedrank.communities.schemas import dto
from feedrank.communities.services.feed_service import CommunityFeedService
from feedrank.settings import settings

router = APIRouter(tags=["communities:posts"])
_service = CommunityFeedService()


@router.get("/communities/{community_id}/posts", response_model=dto.CommunityPostPage)
async def list_community_posts_endpoint(
	community_id: UUID,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=settings.feed_default_page_size, ge=1),
	sort_by: str = Query(default="new"),
) -> dto.CommunityPostPage:
	try:
		return await _service.list_posts(community_id, page=page, limit=limit, sort_by=sort_by)
	except CommunityError as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/communities/{community_id}/posts/rank-cache/invalidate",
	response_model=dto.RankCacheInvalidateResponse,
)
async def invalidate_rank_cache_endpoint(
	community_id: UUID,
	_: None = Depends(require_admin),
) -> dto.RankCacheInvalidateResponse:
	try:
		return await _service.invalidate_rank_cache(community_id)
	except CommunityError as exc:
		raise to_http_error(exc) from exc
