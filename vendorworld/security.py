from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Dict

from flask import current_app, request, session

from vendorworld.errors import ValidationError


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
_MAX_TRACKED_WINDOWS = 10_000


@dataclass
class _Window:
    opened_at: float
    hits: int = 0


class SimpleRateLimiter:
    """Fixed-window request counter per caller and endpoint, held in process memory."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, _Window] = {}

    def hit(self, key: str, *, limit: int, window_seconds: int) -> int | None:
        """Count one request; returns the seconds to wait when over ``limit``, else None."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.opened_at >= window_seconds:
                if len(self._windows) >= _MAX_TRACKED_WINDOWS:
                    self._drop_expired(now, window_seconds)
                window = self._windows[key] = _Window(opened_at=now)
            window.hits += 1
            if window.hits <= limit:
                return None
            return max(1, math.ceil(window_seconds - (now - window.opened_at)))

    def _drop_expired(self, now: float, window_seconds: int) -> None:
        self._windows = {
            key: window for key, window in self._windows.items() if now - window.opened_at < window_seconds
        }

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


_RATE_LIMITER = SimpleRateLimiter()


def _caller_key() -> str:
    caller = session.get("user_id") or f"ip:{request.remote_addr or 'unknown'}"
    endpoint = request.url_rule.rule if request.url_rule is not None else request.path
    return f"{caller}|{request.method} {endpoint}"


def enforce_rate_limit() -> None:
    config = current_app.config
    if not config.get("RATE_LIMIT_ENABLED", True) or request.method == "OPTIONS":
        return
    retry_after = _RATE_LIMITER.hit(
        _caller_key(),
        limit=max(1, int(config.get("RATE_LIMIT_MAX_REQUESTS") or 300)),
        window_seconds=max(1, int(config.get("RATE_LIMIT_WINDOW_SECONDS") or 60)),
    )
    if retry_after is not None:
        raise ValidationError(
            code="rate_limit_exceeded",
            message_key="rate_limit_exceeded",
            http_status=429,
            payload={"retry_after": retry_after},
        )


def apply_security_headers(response):
    if not current_app.config.get("SECURITY_HEADERS_ENABLED", True):
        return response
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if request.is_secure:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


def reset_rate_limiter_for_tests() -> None:
    _RATE_LIMITER.reset()
