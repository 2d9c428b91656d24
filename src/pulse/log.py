"""JSON-line logging and the per-request access log."""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import UTC, datetime
from typing import Any, TextIO

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pulse.middleware.identity import client_address

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("pulse")


class JsonLineFormatter(logging.Formatter):
    """Serialize each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id is not None:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level_name: str = "info", stream: TextIO | None = None) -> None:
    """Route the ``pulse`` logger to a single JSON-line handler."""
    level = logging.getLevelNamesMapping().get(level_name.upper(), logging.INFO)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonLineFormatter())
    pulse_logger = logging.getLogger("pulse")
    pulse_logger.handlers.clear()
    pulse_logger.addHandler(handler)
    pulse_logger.setLevel(level)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and writes one access line per response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_id=%s method=%s path=%s status=%d duration_ms=%.2f client=%s quota_remaining=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            client_address(request),
            response.headers.get("X-RateLimit-Remaining", "-"),
            extra={"request_id": request_id},
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
