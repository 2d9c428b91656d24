"""Gateway errors and their JSON rendering."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

logger = logging.getLogger("pulse")


class ConfigurationError(Exception):
    """Raised at startup when settings cannot produce a valid configuration."""


class GatewayError(Exception):
    """Base for errors that terminate a single request with a JSON body."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def body(self) -> dict:
        return {"success": False, "error": self.message}

    def headers(self) -> dict[str, str] | None:
        return None


class AuthenticationRequired(GatewayError):
    """No API key presented while key authentication is enabled."""

    status_code = 401

    def __init__(
        self,
        message: str = "API key required. Provide X-API-Key header or api_key query parameter.",
    ) -> None:
        super().__init__(message)


class InvalidCredential(GatewayError):
    """An API key was presented but is not in the configured set."""

    status_code = 403

    def __init__(self, message: str = "Invalid API key.") -> None:
        super().__init__(message)


class QuotaExceeded(GatewayError):
    """The sliding-window count reached the effective limit."""

    status_code = 429

    def __init__(self, limit: int, window_minutes: int, retry_after: int) -> None:
        self.limit = limit
        self.window_minutes = window_minutes
        self.retry_after = retry_after
        super().__init__(
            f"Too many requests. Limit is {limit} requests per "
            f"{window_minutes} minutes, please try again later."
        )

    def body(self) -> dict:
        return {**super().body(), "retryAfter": self.retry_after}

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class ServiceNotConfigured(GatewayError):
    status_code = 503


class UpstreamError(GatewayError):
    """An external provider call failed."""

    status_code = 502


def json_error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    """The shared ``{"success": false, "error": ...}`` error body."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers())


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return error_response(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return json_error(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return json_error(422, f"{field}: {message}" if field else message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return json_error(500, "Internal server error")
