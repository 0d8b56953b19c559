"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Info

REQUEST_COUNTER = Counter(
	"feedrank_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"feedrank_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

FEED_RANK_REQUESTS = Counter(
	"feed_rank_requests_total",
	"Community feed listings served",
	["sort"],
)

FEED_RANK_CANDIDATES = Counter(
	"feed_rank_candidates_total",
	"Candidates considered",
	["sort"],
)

FEED_RANK_DURATION = Histogram(
	"feed_rank_duration_ms",
	"Feed rank duration",
	["sort"],
	buckets=[5, 10, 20, 40, 80, 160, 320, 640],
)

FEED_RANK_CACHE_EVENTS = Counter(
	"feed_rank_cache_events_total",
	"Ranking cache lookups and writes",
	["result"],
)

POSTGRES_UP = Gauge(
	"feedrank_postgres_up",
	"Postgres readiness (1 = ok)",
)

REDIS_UP = Gauge(
	"feedrank_redis_up",
	"Redis readiness (1 = ok)",
)

DEPENDENCY_LATENCY = Histogram(
	"feedrank_dependency_probe_seconds",
	"Readiness probe latency per dependency",
	["dependency"],
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def observe_feed_rank(sort: str, *, candidates: int, elapsed_ms: float) -> None:
	FEED_RANK_REQUESTS.labels(sort=sort).inc()
	if candidates:
		FEED_RANK_CANDIDATES.labels(sort=sort).inc(candidates)
	FEED_RANK_DURATION.labels(sort=sort).observe(elapsed_ms)


def feed_rank_cache(result: str) -> None:
	FEED_RANK_CACHE_EVENTS.labels(result=result).inc()


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


BUILD_INFO = Info("feedrank_build", "Service build and ranking configuration")


def publish_build_info(*, service: str, commit: str, environment: str, hot_ranking: bool, rank_cache: bool) -> None:
	BUILD_INFO.info(
		{
			"service": service,
			"commit": commit,
			"environment": environment,
			"hot_ranking": str(hot_ranking).lower(),
			"rank_cache": str(rank_cache).lower(),
		}
	)
