"""In-memory sliding-window rate limiter keyed by API key or client IP."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable

from fastapi import Request, Response

from pulse.errors import QuotaExceeded
from pulse.middleware.identity import client_address, resolve_identifier
from pulse.middleware.janitor import WindowJanitor
from pulse.schemas.rate_limit import QuotaConfig, RateLimitDecision

logger = logging.getLogger("pulse")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SlidingWindowRateLimiter:
    """Trailing-window request counter with an elevated quota for API keys.

    Each identifier maps to the chronological list of its admitted request
    timestamps (epoch milliseconds). Entries at or before ``now - window_ms``
    are dropped on every access and by the janitor's periodic sweep.

    Args:
        window_ms: Window length in milliseconds.
        max_requests: Quota for anonymous (``ip:``) identifiers.
        max_requests_per_key: Quota for requests carrying a validated API key.
        clock: Returns the current time in epoch milliseconds.
        name: Label for logs and the janitor task.
    """

    def __init__(
        self,
        window_ms: int = 15 * 60 * 1000,
        max_requests: int = 100,
        *,
        max_requests_per_key: int | None = None,
        clock: Callable[[], int] = _now_ms,
        name: str = "global",
    ) -> None:
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.max_requests_per_key = max_requests if max_requests_per_key is None else max_requests_per_key
        self.name = name
        self._clock = clock
        self._records: dict[str, list[int]] = {}
        # Guards read-filter-compare-append; never held across an await.
        self._lock = threading.Lock()
        self.janitor = WindowJanitor(self.sweep, interval=window_ms / 1000, name=name)

    @classmethod
    def from_config(
        cls, quota: QuotaConfig, *, clock: Callable[[], int] = _now_ms, name: str = "global"
    ) -> SlidingWindowRateLimiter:
        return cls(
            quota.window_ms,
            quota.max_requests,
            max_requests_per_key=quota.max_requests_per_key,
            clock=clock,
            name=name,
        )

    @property
    def window_minutes(self) -> int:
        return round(self.window_ms / 60_000)

    def __len__(self) -> int:
        return len(self._records)

    def timestamps(self, identifier: str) -> list[int]:
        """Snapshot of the stored timestamps for ``identifier``."""
        with self._lock:
            return list(self._records.get(identifier, ()))

    def limit_for(self, authenticated: bool) -> int:
        return self.max_requests_per_key if authenticated else self.max_requests

    def consume(self, identifier: str, authenticated: bool = False) -> RateLimitDecision:
        """Admit one request for ``identifier`` or raise ``QuotaExceeded``."""
        limit = self.limit_for(authenticated)
        with self._lock:
            now = self._clock()
            window_start = now - self.window_ms
            valid = [t for t in self._records.get(identifier, ()) if t > window_start]

            if len(valid) >= limit:
                self._records[identifier] = valid
                oldest = valid[0] if valid else now
                retry_after = math.ceil((self.window_ms - (now - oldest)) / 1000)
                raise QuotaExceeded(limit, self.window_minutes, retry_after)

            valid.append(now)
            self._records[identifier] = valid
            return RateLimitDecision(
                limit=limit,
                remaining=limit - len(valid),
                reset_ms=valid[0] + self.window_ms,
                window_ms=self.window_ms,
            )

    def sweep(self) -> int:
        """Prune every record; drop identifiers left empty. Returns the number dropped."""
        with self._lock:
            window_start = self._clock() - self.window_ms
            removed = 0
            for identifier in list(self._records):
                timestamps = self._records[identifier]
                valid = [t for t in timestamps if t > window_start]
                if not valid:
                    del self._records[identifier]
                    removed += 1
                elif len(valid) != len(timestamps):
                    self._records[identifier] = valid
            return removed

    def close(self) -> None:
        """Stop this limiter's janitor and discard its store."""
        self.janitor.cancel()
        with self._lock:
            self._records.clear()


class RouteRateLimit:
    """Route-specific limiter applied on top of the global chain, via a FastAPI dependency.

    The validated API key (if any) is read from ``request.state.api_key``, as
    attached by the request guard middleware.
    """

    def __init__(self, limiter: SlidingWindowRateLimiter) -> None:
        self.limiter = limiter

    async def __call__(self, request: Request, response: Response) -> RateLimitDecision:
        api_key = getattr(request.state, "api_key", None)
        address = client_address(request)
        identifier = resolve_identifier(api_key, address)
        try:
            decision = self.limiter.consume(identifier, authenticated=api_key is not None)
        except QuotaExceeded:
            logger.warning("Route limit %s exceeded for %s", self.limiter.name, address)
            raise
        response.headers.update(decision.headers())
        return decision
