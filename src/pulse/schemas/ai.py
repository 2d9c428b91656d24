"""Request schemas for the AI pass-through endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """A single user message forwarded to the AI provider."""

    message: str = Field(..., min_length=1, max_length=32_000)
    model: str | None = Field(default=None, description="Provider model id; defaults to the configured model.")
    max_tokens: int | None = Field(default=None, ge=1, le=32_000)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
