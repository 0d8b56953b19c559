"""Domain models for community feed ranking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Post(BaseModel):
	"""Represents a community post row."""

	id: UUID
	community_id: UUID
	title: str
	type: str
	created_at: datetime
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)

	@field_validator("created_at", "deleted_at")
	@classmethod
	def normalise_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
		# Naive timestamps from `timestamp` columns are stored as UTC
		if value is None:
			return None
		if value.tzinfo is None:
			return value.replace(tzinfo=timezone.utc)
		return value.astimezone(timezone.utc)


class PostMetrics(BaseModel):
	"""Materialized vote aggregate for a post; absent rows mean all zeros."""

	post_id: UUID
	upvote_count: int = Field(default=0, ge=0)
	downvote_count: int = Field(default=0, ge=0)
	vote_score: int = 0

	model_config = ConfigDict(from_attributes=True)

	@classmethod
	def empty(cls, post_id: UUID) -> "PostMetrics":
		return cls(post_id=post_id)


class RankedPost(BaseModel):
	"""Post paired with its metrics and the score of the active strategy."""

	post: Post
	metrics: PostMetrics
	score: float


__all__ = ["Post", "PostMetrics", "RankedPost"]
