"""FastAPI application factory for the Pulse gateway."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from pulse.config import Settings, settings
from pulse.errors import (
    GatewayError,
    gateway_error_handler,
    http_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from pulse.log import RequestLoggingMiddleware, configure_logging
from pulse.middleware.api_key import ApiKeyValidator
from pulse.middleware.chain import GatewayGuardMiddleware, RequestGuard
from pulse.middleware.janitor import LimiterRegistry
from pulse.middleware.rate_limiter import RouteRateLimit, SlidingWindowRateLimiter
from pulse.services.openrouter import OpenRouterClient

logger = logging.getLogger("pulse")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    # Startup
    app_settings: Settings = app.state.settings
    configure_logging(app_settings.log_level)
    if app_settings.api_key_auth_enabled:
        logger.info("API key authentication is ENABLED")
    else:
        logger.info("API key authentication is DISABLED (set PULSE_API_KEY_AUTH_ENABLED=true to enable)")
    app.state.limiters.start_all()
    logger.info("Pulse gateway started (environment=%s)", app_settings.environment)
    yield
    # Shutdown
    logger.info("Pulse gateway shutting down")
    await app.state.limiters.aclose()
    await app.state.openrouter.aclose()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the gateway. Raises ``ConfigurationError`` on invalid settings."""
    app_settings = app_settings or settings
    key_auth = app_settings.key_auth_config()
    quota = app_settings.quota_config()
    ai_quota = app_settings.ai_quota_config()

    app = FastAPI(
        title="Pulse Gateway",
        description="API-key aware, rate limited gateway for AI chat completions.",
        version="1.0.0",
        lifespan=lifespan,
    )

    limiters = LimiterRegistry()
    global_limiter = limiters.register(SlidingWindowRateLimiter.from_config(quota, name="global"))
    ai_limiter = limiters.register(SlidingWindowRateLimiter.from_config(ai_quota, name="ai-chat"))

    app.state.settings = app_settings
    app.state.limiters = limiters
    app.state.rate_limiter = global_limiter
    app.state.ai_rate_limit = RouteRateLimit(ai_limiter)
    app.state.openrouter = OpenRouterClient(
        app_settings.openrouter_api_key,
        app_settings.openrouter_base_url,
        default_model=app_settings.default_ai_model,
        max_tokens=app_settings.max_tokens,
        temperature=app_settings.temperature,
        timeout=app_settings.openrouter_timeout,
    )

    # Key validation -> rate limiting (innermost of the user middleware)
    app.add_middleware(
        GatewayGuardMiddleware,
        guard=RequestGuard(ApiKeyValidator(key_auth), global_limiter),
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    # Request logging
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    from pulse.api.ai import router as ai_router
    from pulse.api.health import router as health_router
    from pulse.api.info import router as info_router

    app.include_router(health_router)
    app.include_router(info_router)
    app.include_router(ai_router)

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "pulse.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


app = create_app()
