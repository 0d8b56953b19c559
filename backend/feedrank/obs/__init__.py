"""Observability bootstrap: logging, request middleware and build info."""

from __future__ import annotations

from fastapi import FastAPI

from feedrank.obs import logging as obs_logging
from feedrank.obs import metrics, middleware
from feedrank.settings import settings

_initialised = False


def init(app: FastAPI) -> None:
	global _initialised
	if _initialised:
		return
	# The middleware stays installed so responses always carry a request id
	middleware.install(app)
	if settings.obs_enabled:
		obs_logging.configure_logging()
		metrics.publish_build_info(
			service=settings.service_name,
			commit=settings.git_commit,
			environment=settings.environment,
			hot_ranking=settings.feed_hot_ranking_enabled,
			rank_cache=settings.feed_rank_cache_enabled,
		)
		obs_logging.get_logger("feedrank.obs").info(
			"observability_initialised",
			extra={"service": settings.service_name, "commit": settings.git_commit},
		)
	_initialised = True


__all__ = ["init"]
