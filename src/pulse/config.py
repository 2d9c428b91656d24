"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from pulse.errors import ConfigurationError
from pulse.schemas.auth import KeyAuthConfig
from pulse.schemas.rate_limit import QuotaConfig


class Settings(BaseSettings):
    # Rate limiting (global chain)
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max: int = 100  # Anonymous requests per window, per IP
    rate_limit_max_per_key: int = 1000  # Requests per window for a validated API key

    # Rate limiting (AI chat route)
    ai_rate_limit_max: int = 20
    ai_rate_limit_max_per_key: int = 200

    # Authentication
    api_key_auth_enabled: bool = False
    api_keys: str = ""  # Comma-separated valid API keys

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_ai_model: str = "anthropic/claude-3-haiku"
    max_tokens: int = 1000
    temperature: float = 0.7
    openrouter_timeout: float = 30.0

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "PULSE_", "env_file": ".env"}

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def parse_api_keys(self) -> frozenset[str]:
        """Split the comma-separated ``api_keys`` string, dropping blanks."""
        return frozenset(k.strip() for k in self.api_keys.split(",") if k.strip())

    def key_auth_config(self) -> KeyAuthConfig:
        keys = self.parse_api_keys()
        if self.api_key_auth_enabled and not keys:
            raise ConfigurationError(
                "API key authentication is enabled but PULSE_API_KEYS is empty"
            )
        return KeyAuthConfig(enabled=self.api_key_auth_enabled, valid_keys=keys)

    def quota_config(self) -> QuotaConfig:
        return _build_quota(
            self.rate_limit_window_ms, self.rate_limit_max, self.rate_limit_max_per_key
        )

    def ai_quota_config(self) -> QuotaConfig:
        return _build_quota(
            self.rate_limit_window_ms, self.ai_rate_limit_max, self.ai_rate_limit_max_per_key
        )


def _build_quota(window_ms: int, max_requests: int, max_per_key: int) -> QuotaConfig:
    if window_ms <= 0:
        raise ConfigurationError(f"Rate limit window must be positive, got {window_ms}ms")
    if max_requests <= 0 or max_per_key <= 0:
        raise ConfigurationError(
            f"Rate limit quotas must be positive (max={max_requests}, per_key={max_per_key})"
        )
    if max_per_key < max_requests:
        raise ConfigurationError(
            f"Per-key quota ({max_per_key}) is below the anonymous quota ({max_requests})"
        )
    return QuotaConfig(
        window_ms=window_ms,
        max_requests=max_requests,
        max_requests_per_key=max_per_key,
    )


settings = Settings()
