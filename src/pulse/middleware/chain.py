"""Request guard chain: key validation, then rate limiting, then the route."""

from __future__ import annotations

import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pulse.errors import GatewayError, QuotaExceeded, error_response
from pulse.middleware.api_key import ApiKeyValidator
from pulse.middleware.identity import client_address, extract_api_key, resolve_identifier
from pulse.middleware.rate_limiter import SlidingWindowRateLimiter
from pulse.schemas.rate_limit import RateLimitDecision

logger = logging.getLogger("pulse")

EXEMPT_PATHS = frozenset({"/health", "/ready"})


class RequestGuard:
    """Runs the validator and the limiter for one request, in that order.

    Args:
        validator: API key validator; consulted only under ``protected_prefix``.
        limiter: The global sliding-window limiter.
        protected_prefix: Path prefix requiring API key validation.
        exempt_paths: Paths bypassing the whole chain.
    """

    def __init__(
        self,
        validator: ApiKeyValidator,
        limiter: SlidingWindowRateLimiter,
        protected_prefix: str = "/api",
        exempt_paths: frozenset[str] = EXEMPT_PATHS,
    ) -> None:
        self.validator = validator
        self.limiter = limiter
        self.protected_prefix = protected_prefix
        self.exempt_paths = exempt_paths

    def _is_protected(self, path: str) -> bool:
        prefix = self.protected_prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")

    def admit(self, request: Request) -> RateLimitDecision | None:
        """Validate and count ``request``; raises a ``GatewayError`` on rejection."""
        path = request.url.path
        if path in self.exempt_paths:
            return None

        address = client_address(request)
        api_key = None
        if self._is_protected(path):
            api_key = self.validator.validate(extract_api_key(request), address)
        request.state.api_key = api_key

        identifier = resolve_identifier(api_key, address)
        try:
            return self.limiter.consume(identifier, authenticated=api_key is not None)
        except QuotaExceeded as exc:
            logger.warning(
                "Rate limit exceeded for %s (limit=%d, retry_after=%ds)",
                address,
                exc.limit,
                exc.retry_after,
            )
            raise


class GatewayGuardMiddleware(BaseHTTPMiddleware):
    """Short-circuits rejected requests; stamps quota headers on admitted ones."""

    def __init__(self, app, guard: RequestGuard) -> None:
        super().__init__(app)
        self.guard = guard

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            decision = self.guard.admit(request)
        except GatewayError as exc:
            return error_response(exc)

        response = await call_next(request)
        # Route-level rejections keep only their own Retry-After
        if decision is not None and response.status_code != 429:
            for name, value in decision.headers().items():
                response.headers.setdefault(name, value)
        return response
