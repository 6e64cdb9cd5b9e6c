"""Request guards protecting the expensive generation endpoints."""

from __future__ import annotations

import os
import threading
import time
from collections import defaultdict, deque
from typing import Deque, DefaultDict, Iterable, Optional

from fastapi import HTTPException, Request

GENERATION_RATE_LIMIT = int(os.getenv("GENERATION_RATE_LIMIT", "30"))
GENERATION_RATE_WINDOW_SECONDS = int(os.getenv("GENERATION_RATE_WINDOW_SECONDS", "60"))

# X-Forwarded-For is only honored when the direct peer is one of these hosts.
TRUSTED_PROXY_IPS = tuple(
    entry.strip() for entry in os.getenv("TRUSTED_PROXY_IPS", "").split(",") if entry.strip()
)

_RATE_LOCK = threading.Lock()
_RATE_BUCKETS: DefaultDict[str, Deque[float]] = defaultdict(deque)
_LAST_SWEEP = {"at": 0.0}
_clock = time.monotonic


def get_client_ip(request: Request, trusted_proxies: Optional[Iterable[str]] = None) -> str:
    """Requester address, taken from X-Forwarded-For only behind a trusted proxy."""

    proxies = TRUSTED_PROXY_IPS if trusted_proxies is None else tuple(trusted_proxies)
    peer = request.client.host if request.client and request.client.host else "unknown"
    if peer in proxies:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            candidate = forwarded.split(",")[0].strip()
            if candidate:
                return candidate
    return peer


def _evict_idle_buckets(now: float, window_seconds: int) -> None:
    # Caller holds _RATE_LOCK.
    if now - _LAST_SWEEP["at"] < window_seconds:
        return
    _LAST_SWEEP["at"] = now
    idle = [key for key, bucket in _RATE_BUCKETS.items() if not bucket or now - bucket[-1] > window_seconds]
    for identifier in idle:
        del _RATE_BUCKETS[identifier]


def rate_limit_request(
    request: Request,
    *,
    scope: str,
    limit: Optional[int] = None,
    window_seconds: Optional[int] = None,
) -> None:
    """Sliding-window limit per client IP and scope; raises 429 when exceeded."""

    limit = GENERATION_RATE_LIMIT if limit is None else limit
    window_seconds = GENERATION_RATE_WINDOW_SECONDS if window_seconds is None else window_seconds
    identifier = f"{scope}:{get_client_ip(request)}"
    now = _clock()
    with _RATE_LOCK:
        _evict_idle_buckets(now, window_seconds)
        bucket = _RATE_BUCKETS[identifier]
        while bucket and now - bucket[0] > window_seconds:
            bucket.popleft()
        if len(bucket) >= limit:
            raise HTTPException(status_code=429, detail="Too many generation requests. Try again shortly.")
        bucket.append(now)


def generation_rate_limit(scope: str, *, limit: Optional[int] = None, window_seconds: Optional[int] = None):
    """Build a FastAPI dependency enforcing the generation limit for ``scope``.

    Without explicit values the module settings are read on every request.
    """

    async def _dependency(request: Request) -> None:
        rate_limit_request(request, scope=scope, limit=limit, window_seconds=window_seconds)

    return _dependency


def tracked_clients() -> int:
    with _RATE_LOCK:
        return len(_RATE_BUCKETS)


def reset_rate_limits() -> None:
    with _RATE_LOCK:
        _RATE_BUCKETS.clear()
        _LAST_SWEEP["at"] = 0.0


__all__ = [
    "generation_rate_limit",
    "get_client_ip",
    "rate_limit_request",
    "reset_rate_limits",
    "tracked_clients",
]
