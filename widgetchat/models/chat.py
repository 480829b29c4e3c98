"""
Chat domain models and schemas.

Chat message records plus request/response schemas for the chat history API.

Dependencies: pydantic
System role: Chat contracts
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """
    Immutable chat message.

    Attributes:
        id: Opaque message id
        session_id: Owning chat session
        content: Message text
        role: Message author
        attachments: Attachment descriptors sent by the client
        timestamp: Creation time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    content: str
    role: MessageRole
    attachments: list[Any] = Field(default_factory=list)
    timestamp: datetime

    def to_event_data(self) -> dict[str, Any]:
        """Wire shape of the `message` server event."""
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "content": self.content,
            "role": self.role.value,
            "attachments": list(self.attachments),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_history_entry(self) -> dict[str, str]:
        """Role/content pair used as model conversation history."""
        return {"role": self.role.value, "content": self.content}


class ChatMessageResponse(BaseModel):
    """Single chat message in history."""

    id: str
    role: str = Field(description="Message role: 'user', 'assistant' or 'system'")
    content: str = Field(description="Message content")
    attachments: list[Any] = Field(default_factory=list)
    created_at: datetime


class ChatSessionResponse(BaseModel):
    """Stored chat session summary."""

    id: str
    user_id: str | None
    widget_id: str | None
    created_at: datetime
    last_activity: datetime
    message_count: int = 0
    first_message: str | None = None


class ChatSessionDetailResponse(BaseModel):
    """Stored chat session with its ordered messages."""

    session: ChatSessionResponse
    messages: list[ChatMessageResponse]
    total: int = Field(description="Total number of messages")


class CreateChatSessionRequest(BaseModel):
    """Body of POST /chat/sessions."""

    model_config = ConfigDict(populate_by_name=True)

    widget_id: str | None = Field(default=None, alias="widgetId")


class CreateChatSessionResponse(BaseModel):
    """
    Newly opened chat session.

    Attributes:
        session_id: Generated session id, used as `sessionId` on the socket
        widget_id: Widget binding, None when unbound or the widget is unknown
        welcome_message: Widget welcome message stored with the session
    """

    session_id: str
    widget_id: str | None
    created_at: datetime
    welcome_message: ChatMessageResponse | None = None
