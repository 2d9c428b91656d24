"""Request identity: which API key was presented, and who is asking."""

from __future__ import annotations

from fastapi import Request

API_KEY_HEADER = "x-api-key"
API_KEY_QUERY_PARAM = "api_key"


def resolve_identifier(api_key: str | None, address: str | None) -> str:
    """Return ``key:<api_key>`` for a validated key, else ``ip:<address>``."""
    if api_key:
        return f"key:{api_key}"
    return f"ip:{address or 'unknown'}"


def extract_api_key(request: Request) -> str | None:
    """The presented key, from the ``X-API-Key`` header or else the ``api_key`` query param."""
    return request.headers.get(API_KEY_HEADER) or request.query_params.get(API_KEY_QUERY_PARAM) or None


def client_address(request: Request) -> str | None:
    return request.client.host if request.client else None
