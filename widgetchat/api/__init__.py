"""
API routes module.

FastAPI routers for all HTTP endpoints. The WebSocket route is mounted
separately, outside the versioned prefix.
"""

from fastapi import APIRouter

from .routers import (
    chat_sessions_router,
    chat_ws_router,
    health_router,
    knowledge_router,
)

api_router = APIRouter()

# Include all REST routers
api_router.include_router(health_router)
api_router.include_router(chat_sessions_router)
api_router.include_router(knowledge_router)

__all__ = ["api_router", "chat_ws_router"]
