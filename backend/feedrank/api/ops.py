"""Probe, metrics and admin-token endpoints for operators."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from feedrank.obs import health
from feedrank.settings import settings

router = APIRouter(tags=["ops"])


def _bearer(authorization: Optional[str]) -> Optional[str]:
	scheme, _, credentials = (authorization or "").partition(" ")
	if scheme.lower() != "bearer" or not credentials:
		return None
	return credentials.strip()


async def require_admin(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	"""Gate operator endpoints behind ``OBS_ADMIN_TOKEN``.

	The token is accepted from ``X-Admin-Token`` or an ``Authorization: Bearer``
	header. With no token configured every call is refused.
	"""
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	provided = x_admin_token or _bearer(authorization)
	if provided is None or not secrets.compare_digest(provided, expected):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if not settings.obs_metrics_public:
		await require_admin(x_admin_token=x_admin_token, authorization=authorization)


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready() -> JSONResponse:
	status_code, payload = await health.readiness()
	return JSONResponse(content=payload, status_code=status_code)


@router.get("/metrics", dependencies=[Depends(require_metrics_access)])
async def prometheus_metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
