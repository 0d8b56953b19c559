"""Maps feed errors onto HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from feedrank.communities.domain.exceptions import CommunityError


def to_http_error(exc: Exception) -> HTTPException:
	if not isinstance(exc, CommunityError):
		return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal_error")
	return HTTPException(status_code=exc.status_code, detail=exc.detail, headers=exc.headers)
