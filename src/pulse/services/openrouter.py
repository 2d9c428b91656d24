"""OpenRouter client: forwards chat completions and model listings."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pulse.errors import ServiceNotConfigured, UpstreamError

logger = logging.getLogger("pulse")


class OpenRouterClient:
    """Async client for the OpenRouter API.

    Args:
        api_key: OpenRouter API key. Empty = not configured; calls raise 503.
        base_url: API root (e.g. "https://openrouter.ai/api/v1").
        default_model: Model used when a request does not name one.
        max_tokens: Default completion token budget.
        temperature: Default sampling temperature.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        *,
        default_model: str = "anthropic/claude-3-haiku",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 30.0,
        referer: str = "http://localhost:3000",
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.referer = referer
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": "Pulse Gateway",
        }

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, headers=self._headers()
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        if not self.configured:
            raise ServiceNotConfigured("OpenRouter API key is not configured")
        try:
            resp = await self.client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "OpenRouter API error %s on %s: %s",
                exc.response.status_code,
                url,
                exc.response.text[:500],
            )
            raise UpstreamError(_upstream_message(exc.response)) from exc
        except httpx.RequestError as exc:
            logger.error("OpenRouter unreachable on %s: %s", url, exc)
            raise UpstreamError(f"Cannot reach OpenRouter: {exc}") from exc
        return resp.json()

    async def chat_completion(
        self,
        message: str,
        model: str | None = None,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Send ``message`` as a single user turn and return the provider's JSON."""
        body = {
            "model": model or self.default_model,
            "messages": [{"role": "user", "content": message}],
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
        }
        return await self._request("POST", "/chat/completions", json=body)

    async def list_models(self) -> dict[str, Any]:
        return await self._request("GET", "/models")

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()


def _upstream_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        error = error.get("message")
    return str(error or f"OpenRouter returned HTTP {response.status_code}")
