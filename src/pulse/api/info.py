"""API index endpoint."""

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["api"])


@router.get("", summary="Describe the available API routes")
async def api_info():
    return {
        "message": "Pulse Gateway API",
        "version": "1.0.0",
        "availableRoutes": [
            "GET /api - API information",
            "POST /api/ai/chat - Forward a chat completion to OpenRouter",
            "GET /api/ai/models - List OpenRouter models",
        ],
    }
