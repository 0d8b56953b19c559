"""Pydantic schemas for communities API."""

from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel


class PostSummary(BaseModel):
	id: UUID
	type: str
	title: str
	created_at: datetime


class PaginationMeta(BaseModel):
	current: int
	limit: int
	records: int
	pages: int


class CommunityPostPage(BaseModel):
	pagination: PaginationMeta
	data: List[PostSummary]


class RankCacheInvalidateResponse(BaseModel):
	community_id: UUID
	generation: int
