"""
Exception hierarchy for the chat-widget backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Only PersistenceError (and unexpected exceptions) reach the end user during
message orchestration; every other kind has a degradation path.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class WidgetChatException(Exception):
    """Base exception for all chat-widget backend errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(WidgetChatException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class SessionNotFoundError(WidgetChatException):
    """Raised when a chat session cannot be found."""

    def __init__(self, session_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize session not found error.

        Args:
            session_id: ID of the missing session
            details: Additional context
        """
        details = details or {}
        details["session_id"] = session_id
        super().__init__(f"Session not found: {session_id}", details)


class AuthenticationError(WidgetChatException):
    """Raised when a bearer credential is present but cannot be accepted."""

    pass


class PolicyNotFoundError(WidgetChatException):
    """Raised when a context rule is missing or inactive (non-fatal)."""

    def __init__(self, rule_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["rule_id"] = rule_id
        super().__init__(f"Context rule not found or inactive: {rule_id}", details)


class RuleInUseError(WidgetChatException):
    """Raised when deleting a context rule that a widget still references."""

    def __init__(
        self,
        rule_id: str,
        widget_ids: list[str],
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["rule_id"] = rule_id
        details["widget_ids"] = widget_ids
        super().__init__(f"Context rule {rule_id} is used by {len(widget_ids)} widget(s)", details)


class RetrievalError(WidgetChatException):
    """Raised when knowledge retrieval fails (degrades to no context)."""

    def __init__(
        self,
        message: str,
        knowledge_base_ids: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize retrieval error.

        Args:
            message: Error message
            knowledge_base_ids: Knowledge bases that were queried
            details: Additional context
        """
        details = details or {}
        if knowledge_base_ids:
            details["knowledge_base_ids"] = knowledge_base_ids
        super().__init__(message, details)


class ModelProviderError(WidgetChatException):
    """Raised when a language-model provider call fails."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize model provider error.

        Args:
            message: Error message
            provider: Identifier of the provider that failed
            details: Additional context
        """
        details = details or {}
        if provider:
            details["provider"] = provider
        self.provider = provider
        super().__init__(message, details)


class ModelTimeoutError(ModelProviderError):
    """Raised when a provider call exceeds the configured timeout."""

    pass


class FilterError(WidgetChatException):
    """Raised when a single response filter cannot be applied."""

    def __init__(
        self,
        message: str,
        filter_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if filter_index is not None:
            details["filter_index"] = filter_index
        super().__init__(message, details)


class PersistenceError(WidgetChatException):
    """Raised when the durable message log cannot be written."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize persistence error.

        Args:
            message: Error message
            operation: Operation that failed (create_session, insert_exchange, ...)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class InteractionLogError(WidgetChatException):
    """Raised when the AI interaction audit row cannot be written (non-critical)."""

    pass


class AccessDeniedError(WidgetChatException):
    """Raised when an authenticated user requests resources they cannot read."""

    pass
