"""ASGI entrypoint for the feedrank service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from feedrank.api import ops
from feedrank.api.errors import install_error_handlers
from feedrank.communities.api import router as communities_router
from feedrank.infra import postgres
from feedrank.infra.redis import close_redis
from feedrank.obs import init as obs_init
from feedrank.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	logger.info(
		"feedrank_started",
		extra={
			"environment": settings.environment,
			"hot_ranking": settings.feed_hot_ranking_enabled,
			"rank_cache": settings.feed_rank_cache_enabled,
		},
	)
	try:
		yield
	finally:
		await postgres.close_pool()
		await close_redis()
		logger.info("feedrank_stopped")


def create_app() -> FastAPI:
	application = FastAPI(title="feedrank", version="0.1.0", lifespan=lifespan)
	install_error_handlers(application)
	obs_init(application)
	application.include_router(ops.router)
	application.include_router(communities_router)
	return application


app = create_app()
