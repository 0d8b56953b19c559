"""Routers for community feed listings."""

from __future__ import annotations

from fastapi import APIRouter

from feedrank.communities.api import posts

router = APIRouter(prefix="/api/communities/v1")

router.include_router(posts.router)
