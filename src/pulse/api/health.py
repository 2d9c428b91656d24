"""Health check and service banner endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    return {
        "message": "Welcome to Pulse Gateway",
        "description": "Rate-limited gateway for AI chat completions",
        "version": "1.0.0",
        "endpoints": {"health": "/health", "api": "/api"},
    }


@router.get("/health")
async def health():
    return {
        "status": "OK",
        "service": "pulse",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def ready():
    return {"status": "ready"}
