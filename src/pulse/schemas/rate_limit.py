"""Rate limiting schemas."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class QuotaConfig(BaseModel):
    """Immutable quota values, built once at startup."""

    window_ms: int = Field(default=15 * 60 * 1000, gt=0)
    max_requests: int = Field(default=100, gt=0)
    max_requests_per_key: int = Field(default=1000, gt=0)

    model_config = {"frozen": True}


def iso_from_ms(ms: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string, e.g. ``2026-01-01T00:00:00.000Z``."""
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RateLimitDecision:
    """Quota metadata for an admitted request."""

    limit: int
    remaining: int
    reset_ms: int
    window_ms: int

    @property
    def reset_at(self) -> str:
        return iso_from_ms(self.reset_ms)

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at,
        }
