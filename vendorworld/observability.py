from __future__ import annotations

import bisect
import json
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from flask import g, has_request_context, request, session


LATENCY_BUCKETS_MS = (10.0, 50.0, 100.0, 250.0, 500.0, 1000.0, 5000.0)

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the request and the signed-in user."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if has_request_context():
            entry["request_id"] = str(getattr(g, "request_id", "") or "n/a")
            entry["method"] = request.method
            entry["path"] = request.path
            user_id = session.get("user_id")
            if user_id:
                entry["user_id"] = user_id
                entry["role"] = session.get("user_role")
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_") or key in entry:
                continue
            entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, separators=(",", ":"), default=str)


def configure_json_logging(app) -> None:
    if not app.config.get("LOG_JSON", True):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    app.logger.handlers = []
    app.logger.propagate = True


def ensure_request_id() -> str:
    request_id = getattr(g, "request_id", None)
    if not request_id:
        request_id = (request.headers.get("X-Request-Id") or "").strip() or uuid.uuid4().hex
        g.request_id = request_id
    return request_id


@dataclass
class RouteStats:
    requests: int = 0
    errors: int = 0
    latency_total_ms: float = 0.0
    latency_max_ms: float = 0.0
    bucket_counts: List[int] = field(default_factory=lambda: [0] * (len(LATENCY_BUCKETS_MS) + 1))

    def record(self, status_code: int, duration_ms: float) -> None:
        self.requests += 1
        if status_code >= 400:
            self.errors += 1
        self.latency_total_ms += duration_ms
        self.latency_max_ms = max(self.latency_max_ms, duration_ms)
        self.bucket_counts[bisect.bisect_left(LATENCY_BUCKETS_MS, duration_ms)] += 1

    def cumulative_buckets(self) -> Dict[str, int]:
        labels = [f"{limit:g}" for limit in LATENCY_BUCKETS_MS] + ["+Inf"]
        running = 0
        buckets: Dict[str, int] = {}
        for label, count in zip(labels, self.bucket_counts):
            running += count
            buckets[label] = running
        return buckets


class MetricsRegistry:
    """HTTP counters keyed by ``"<METHOD> <rule>"``, reported by ``/health``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._routes: Dict[str, RouteStats] = {}

    def reset(self) -> None:
        with self._lock:
            self._routes = {}

    def observe_http(self, method: str, route: str, status_code: int, duration_ms: float) -> None:
        key = f"{method.upper()} {route or 'unknown'}"
        with self._lock:
            self._routes.setdefault(key, RouteStats()).record(int(status_code), max(0.0, float(duration_ms)))

    def snapshot(self) -> dict:
        with self._lock:
            by_route = [
                {
                    "route": route,
                    "requests": stats.requests,
                    "errors": stats.errors,
                    "avg_latency_ms": round(stats.latency_total_ms / stats.requests, 2) if stats.requests else 0.0,
                    "max_latency_ms": round(stats.latency_max_ms, 2),
                    "latency_buckets_ms": stats.cumulative_buckets(),
                }
                for route, stats in self._routes.items()
            ]
        by_route.sort(key=lambda item: item["requests"], reverse=True)
        return {
            "requests_total": sum(item["requests"] for item in by_route),
            "errors_total": sum(item["errors"] for item in by_route),
            "by_route": by_route,
        }


_METRICS = MetricsRegistry()


def mark_request_start() -> None:
    g.request_started_at = time.perf_counter()


def observe_response(response):
    started = getattr(g, "request_started_at", None)
    elapsed_ms = (time.perf_counter() - started) * 1000.0 if started else 0.0
    route = request.url_rule.rule if request.url_rule is not None else request.path
    _METRICS.observe_http(request.method, route, response.status_code, elapsed_ms)
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    return response


def metrics_snapshot() -> dict:
    return _METRICS.snapshot()


def reset_metrics_for_tests() -> None:
    _METRICS.reset()
