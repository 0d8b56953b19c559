"""Offset pagination shared by every feed ranking strategy."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from feedrank.communities.domain import models, policies


@dataclass(slots=True, frozen=True)
class PageWindow:
	"""1-based page request translated to an offset window."""

	page: int
	limit: int

	@property
	def offset(self) -> int:
		return (self.page - 1) * self.limit

	@property
	def end(self) -> int:
		return self.offset + self.limit


@dataclass(slots=True)
class OrderedView:
	"""A run of ordered posts starting at ``offset`` within the full ordering.

	Store-paginated strategies hand back exactly the requested window; in-memory
	strategies hand back the ordered prefix starting at zero.
	"""

	records: int
	items: list[models.Post] = field(default_factory=list)
	offset: int = 0


@dataclass(slots=True)
class PageResult:
	current: int
	limit: int
	records: int
	pages: int
	data: list[models.Post]


def page_count(records: int, limit: int) -> int:
	return math.ceil(records / limit) if records else 0


class PaginationEngine:
	"""Builds the pagination envelope regardless of who ordered the posts."""

	def __init__(self, *, max_limit: int | None = None) -> None:
		self.max_limit = max_limit

	def window(self, page: int, limit: int) -> PageWindow:
		policies.ensure_page_window(page, limit, max_limit=self.max_limit)
		return PageWindow(page=page, limit=limit)

	def paginate(self, window: PageWindow, view: OrderedView) -> PageResult:
		start = max(window.offset - view.offset, 0)
		data = list(view.items[start : start + window.limit])
		return PageResult(
			current=window.page,
			limit=window.limit,
			records=view.records,
			pages=page_count(view.records, window.limit),
			data=data,
		)


__all__ = ["OrderedView", "PageResult", "PageWindow", "PaginationEngine", "page_count"]
