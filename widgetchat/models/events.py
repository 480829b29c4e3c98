"""
Connection event schemas for WebSocket chat.

Defines event types and payloads exchanged with widget clients.
Every frame is a JSON object {"event": <name>, "data": {...}}.

Dependencies: pydantic
System role: Connection Layer protocol schemas
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ServerEventType(str, Enum):
    """Server-to-client event types."""

    ACK = "ack"
    MESSAGE = "message"
    TYPING = "typing"
    ERROR = "error"
    PONG = "pong"


class ClientEventType(str, Enum):
    """Client-to-server event types."""

    INIT_CHAT = "init_chat"
    MESSAGE = "message"
    TYPING = "typing"
    PING = "ping"


class ServerEvent(BaseModel):
    """
    Outbound event frame.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: ServerEventType
    data: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"event": self.event.value, "data": self.data}

    @classmethod
    def error(cls, message: str) -> "ServerEvent":
        return cls(event=ServerEventType.ERROR, data={"message": message})

    @classmethod
    def typing(cls, is_typing: bool, user_id: str | None = None) -> "ServerEvent":
        data: dict[str, Any] = {"isTyping": is_typing}
        if user_id is not None:
            data["userId"] = user_id
        return cls(event=ServerEventType.TYPING, data=data)


class InitChatPayload(BaseModel):
    """Client init_chat payload."""

    widget_id: str | None = Field(default=None, alias="widgetId")


class ClientMessagePayload(BaseModel):
    """
    Client chat message payload.

    Attributes:
        content: User's chat message
        attachments: Optional attachment descriptors
    """

    content: str = ""
    attachments: list[Any] | None = None


class TypingPayload(BaseModel):
    """Client typing indicator payload."""

    is_typing: bool = Field(default=False, alias="isTyping")
