"""Input policies for community feed listings."""

from __future__ import annotations

from feedrank.communities.domain.exceptions import LimitOutOfRange, PageOutOfRange
from feedrank.settings import settings


def ensure_page(page: int) -> None:
	if page < 1:
		raise PageOutOfRange(page)


def ensure_page_limit(limit: int, *, max_limit: int | None = None) -> None:
	ceiling = settings.feed_max_page_size if max_limit is None else max_limit
	if limit < 1 or limit > ceiling:
		raise LimitOutOfRange(limit, ceiling)


def ensure_page_window(page: int, limit: int, *, max_limit: int | None = None) -> None:
	"""Reject page/limit pairs that would produce meaningless pagination math."""
	ensure_page(page)
	ensure_page_limit(limit, max_limit=max_limit)
