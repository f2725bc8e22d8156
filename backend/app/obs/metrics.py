"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram

log = logging.getLogger(__name__)


REQUEST_COUNTER = Counter(
	"console_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"console_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SYNC_SNAPSHOTS = Counter(
	"console_sync_snapshots_total",
	"Snapshots applied to the projection per subscription",
	["subscription"],
)

SYNC_SKIPPED_RECORDS = Counter(
	"console_sync_skipped_records_total",
	"Report records dropped because the payload could not be parsed",
)

SYNC_FAILURES = Counter(
	"console_sync_failures_total",
	"Subscription failures that marked the engine as failed",
	["subscription", "kind"],
)

SYNC_RUNNING = Gauge(
	"console_sync_running",
	"1 while the sync engine subscriptions are running",
)

STATS_GAUGE = Gauge(
	"console_projection_stat",
	"Latest derived statistic held by the projection",
	["stat"],
)

RESOLUTION_OUTCOMES = Counter(
	"console_resolution_outcomes_total",
	"Resolution workflow outcomes",
	["outcome"],
)

MODERATION_BLOCKS = Counter(
	"console_moderation_blocks_total",
	"Block user attempts",
	["result"],
)

REDIS_UP = Gauge(
	"console_redis_up",
	"Redis readiness status",
)

REDIS_LATENCY = Histogram(
	"console_redis_ping_seconds",
	"Redis ping latency",
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def record_snapshot(subscription: str) -> None:
	SYNC_SNAPSHOTS.labels(subscription=subscription).inc()


def record_sync_failure(subscription: str, kind: str) -> None:
	SYNC_FAILURES.labels(subscription=subscription, kind=kind).inc()


def set_sync_running(running: bool) -> None:
	SYNC_RUNNING.set(1 if running else 0)


def set_stat(stat: str, value: int) -> None:
	STATS_GAUGE.labels(stat=stat).set(value)


def record_resolution(outcome: str) -> None:
	RESOLUTION_OUTCOMES.labels(outcome=outcome).inc()


def record_block(result: str) -> None:
	MODERATION_BLOCKS.labels(result=result).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)
