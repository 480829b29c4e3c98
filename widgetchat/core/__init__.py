"""
Core business logic module.

Contains the exception hierarchy and the pure pipeline components: prompt
composition, knowledge ranking, response filtering and the model gateway.
"""

from widgetchat.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    FilterError,
    InteractionLogError,
    ModelProviderError,
    ModelTimeoutError,
    PersistenceError,
    PolicyNotFoundError,
    RetrievalError,
    RuleInUseError,
    SessionNotFoundError,
    ValidationError,
    WidgetChatException,
)

__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "FilterError",
    "InteractionLogError",
    "ModelProviderError",
    "ModelTimeoutError",
    "PersistenceError",
    "PolicyNotFoundError",
    "RetrievalError",
    "RuleInUseError",
    "SessionNotFoundError",
    "ValidationError",
    "WidgetChatException",
]
