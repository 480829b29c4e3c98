"""API routers."""

from .chat_sessions import router as chat_sessions_router
from .chat_ws import router as chat_ws_router
from .health import router as health_router
from .knowledge import router as knowledge_router

__all__ = [
    "chat_sessions_router",
    "chat_ws_router",
    "health_router",
    "knowledge_router",
]
