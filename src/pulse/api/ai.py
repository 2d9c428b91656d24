"""AI pass-through endpoints backed by OpenRouter."""

import logging

from fastapi import APIRouter, Depends

from pulse.dependencies import ai_rate_limit, get_openrouter_client
from pulse.schemas.ai import ChatRequest
from pulse.services.openrouter import OpenRouterClient

logger = logging.getLogger("pulse")

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post(
    "/chat",
    summary="Forward a chat completion",
    description=(
        "Sends the message as a single user turn to the configured AI provider. "
        "Subject to a stricter per-route rate limit than the rest of the API."
    ),
    dependencies=[Depends(ai_rate_limit)],
)
async def chat(
    request: ChatRequest,
    client: OpenRouterClient = Depends(get_openrouter_client),
):
    data = await client.chat_completion(
        request.message,
        request.model,
        max_tokens=request.max_tokens,
        temperature=request.temperature,
    )
    logger.info("Chat completion served by model=%s", data.get("model", request.model))
    return {"success": True, "data": data, "usage": data.get("usage")}


@router.get("/models", summary="List available AI models")
async def models(client: OpenRouterClient = Depends(get_openrouter_client)):
    data = await client.list_models()
    return {"success": True, "data": data.get("data", data)}
