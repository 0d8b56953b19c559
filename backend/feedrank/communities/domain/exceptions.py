"""Errors raised while listing community feeds."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class CommunityError(Exception):
	"""Base class for feed errors that map onto an HTTP status."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "community_error"
	headers: dict[str, str] | None = None

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(CommunityError):
	"""A page window that cannot be served."""

	status_code = _HTTP_422
	detail = "validation_error"

	def __init__(self, field: str, value: int) -> None:
		super().__init__(f"{field}_out_of_range")
		self.field = field
		self.value = value


class PageOutOfRange(ValidationError):
	def __init__(self, value: int) -> None:
		super().__init__("page", value)


class LimitOutOfRange(ValidationError):
	def __init__(self, value: int, ceiling: int) -> None:
		super().__init__("limit", value)
		self.ceiling = ceiling


class FeedStoreUnavailable(CommunityError):
	"""The post store or metrics provider could not be read."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "feed_store_unavailable"

	def __init__(self, retry_after_seconds: int = 1) -> None:
		super().__init__()
		self.headers = {"Retry-After": str(retry_after_seconds)}


class RankCacheUnavailable(FeedStoreUnavailable):
	"""The ranking cache could not be invalidated."""

	detail = "rank_cache_unavailable"


__all__ = [
	"CommunityError",
	"FeedStoreUnavailable",
	"LimitOutOfRange",
	"PageOutOfRange",
	"RankCacheUnavailable",
	"ValidationError",
]
