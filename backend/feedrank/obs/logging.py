"""JSON logging with per-request context for the feedrank service.

Request-scoped fields (request id, route, client ip, and the community/sort
being ranked) live in a single ContextVar and are stamped onto every record
emitted while they are bound.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from feedrank.settings import settings

_LOGGER_NAME = "feedrank"

_CONTEXT: ContextVar[Mapping[str, Any]] = ContextVar("feedrank_log_context", default={})

_REDACTED = "[redacted]"
_SENSITIVE_KEYS = ("token", "secret", "authorization", "password", "dsn")
_MAX_STRING_LENGTH = 256

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "taskName"}


def bind_context(**fields: Any) -> Token:
	"""Layer ``fields`` over the current context; returns a token for ``reset_context``."""
	merged = dict(_CONTEXT.get())
	merged.update({key: value for key, value in fields.items() if value is not None})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_context() -> Mapping[str, Any]:
	return _CONTEXT.get()


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _clean(key: str, value: Any) -> Any:
	if any(marker in key.lower() for marker in _SENSITIVE_KEYS):
		return _REDACTED
	if isinstance(value, str) and len(value) > _MAX_STRING_LENGTH:
		return value[:_MAX_STRING_LENGTH] + "..."
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line: base fields, bound context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for key, value in _CONTEXT.get().items():
			payload[key] = _clean(key, value)
		for key, value in record.__dict__.items():
			if key not in _STANDARD_ATTRS:
				payload[key] = _clean(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Drop a share of INFO records; other levels always pass."""

	def __init__(self, rate: Optional[float] = None) -> None:
		super().__init__()
		configured = settings.obs_log_sampling_rate_info if rate is None else rate
		self.rate = max(0.0, min(1.0, configured))

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or self.rate >= 1.0:
			return True
		return random.random() < self.rate


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return get_logger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
