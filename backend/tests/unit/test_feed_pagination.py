from __future__ import annotations

import pytest

from conftest import make_post
from feedrank.communities.domain.exceptions import LimitOutOfRange, ValidationError
from feedrank.communities.ranking.pagination import OrderedView, PageWindow, PaginationEngine, page_count


def test_page_window_offsets():
	window = PageWindow(page=3, limit=25)
	assert window.offset == 50
	assert window.end == 75


@pytest.mark.parametrize(("records", "limit", "expected"), [(0, 25, 0), (1, 25, 1), (25, 25, 1), (26, 25, 2)])
def test_page_count(records, limit, expected):
	assert page_count(records, limit) == expected


@pytest.mark.parametrize(
	("page", "limit", "detail"),
	[(0, 10, "page_out_of_range"), (-1, 10, "page_out_of_range"), (1, 0, "limit_out_of_range"), (1, -5, "limit_out_of_range"), (1, 11, "limit_out_of_range")],
)
def test_window_rejects_invalid_input(page, limit, detail):
	engine = PaginationEngine(max_limit=10)
	with pytest.raises(ValidationError) as excinfo:
		engine.window(page, limit)
	assert excinfo.value.detail == detail
	assert excinfo.value.status_code == 422


def test_paginate_slices_in_memory_prefix(community_id):
	posts = [make_post(community_id, minutes_ago=i) for i in range(7)]
	engine = PaginationEngine()
	window = engine.window(2, 3)

	result = engine.paginate(window, OrderedView(records=7, items=posts, offset=0))

	assert result.data == posts[3:6]
	assert (result.current, result.limit, result.records, result.pages) == (2, 3, 7, 3)


def test_paginate_passes_through_store_window(community_id):
	posts = [make_post(community_id, minutes_ago=i) for i in range(3)]
	engine = PaginationEngine()
	window = engine.window(4, 3)

	result = engine.paginate(window, OrderedView(records=12, items=posts, offset=window.offset))

	assert result.data == posts
	assert result.pages == 4


def test_paginate_page_past_end_keeps_totals(community_id):
	posts = [make_post(community_id, minutes_ago=i) for i in range(4)]
	engine = PaginationEngine()
	window = engine.window(9, 2)

	result = engine.paginate(window, OrderedView(records=4, items=posts, offset=0))

	assert result.data == []
	assert (result.current, result.records, result.pages) == (9, 4, 2)


def test_limit_error_reports_ceiling():
	engine = PaginationEngine(max_limit=10)
	with pytest.raises(LimitOutOfRange) as excinfo:
		engine.window(1, 11)
	assert (excinfo.value.field, excinfo.value.value, excinfo.value.ceiling) == ("limit", 11, 10)
