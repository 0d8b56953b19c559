"""Request middleware: request ids, bound log context, HTTP metrics."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from feedrank.obs import logging as obs_logging
from feedrank.obs import metrics
from feedrank.settings import settings

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LENGTH = 128


def _request_id(request: Request) -> str:
	incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
	if incoming and len(incoming) <= _MAX_REQUEST_ID_LENGTH:
		return incoming
	return uuid4().hex


def _route_template(request: Request) -> str:
	# Label metrics by template so community ids do not explode cardinality
	route = request.scope.get("route")
	return getattr(route, "path", None) or "unmatched"


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, enabled: bool = True) -> None:
		super().__init__(app)
		self._enabled = enabled
		self._logger = obs_logging.get_logger("feedrank.http")

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		request_id = _request_id(request)
		request.state.request_id = request_id
		if not (self._enabled and settings.obs_enabled):
			response = await call_next(request)
			response.headers[REQUEST_ID_HEADER] = request_id
			return response

		token = obs_logging.bind_context(
			request_id=request_id,
			route=request.url.path,
			client_ip=request.client.host if request.client else None,
		)
		started = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
		except Exception:
			self._logger.exception("http_request_error", extra={"method": request.method})
			raise
		finally:
			elapsed = time.perf_counter() - started
			template = _route_template(request)
			metrics.observe_request(template, request.method, status_code, elapsed)
			self._logger.info(
				"http_request",
				extra={
					"method": request.method,
					"route_template": template,
					"status": status_code,
					"latency_ms": round(elapsed * 1000, 3),
				},
			)
			obs_logging.reset_context(token)

		response.headers[REQUEST_ID_HEADER] = request_id
		return response


def install(app, *, enabled: bool = True) -> None:
	app.add_middleware(ObservabilityMiddleware, enabled=enabled)
