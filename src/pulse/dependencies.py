"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request, Response

from pulse.schemas.rate_limit import RateLimitDecision
from pulse.services.openrouter import OpenRouterClient


def get_openrouter_client(request: Request) -> OpenRouterClient:
    """The OpenRouter client built by the application factory."""
    return request.app.state.openrouter


async def ai_rate_limit(request: Request, response: Response) -> RateLimitDecision:
    """Apply the AI route limiter held on ``app.state``."""
    return await request.app.state.ai_rate_limit(request, response)
