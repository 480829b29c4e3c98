"""API dependencies."""

from widgetchat.api.deps.dependencies import (
    ServiceCache,
    get_chat_history_service,
    get_current_user,
    get_db,
    get_knowledge_service,
    get_optional_user,
    get_service_cache,
    get_session_manager,
)

__all__ = [
    "ServiceCache",
    "get_chat_history_service",
    "get_current_user",
    "get_db",
    "get_knowledge_service",
    "get_optional_user",
    "get_service_cache",
    "get_session_manager",
]
