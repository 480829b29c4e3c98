"""
Per-frame WebSocket event handling.

The transport calls `ChatEventHandler.handle` once per inbound frame. The
handler returns the replies meant for the sending connection only; events for
the whole session room (messages, typing) go through the connection manager.

Client -> server frames:
    {"event": "init_chat", "data": {"widgetId": "..."}}
    {"event": "message", "data": {"content": "...", "attachments": [...]}}
    {"event": "typing", "data": {"isTyping": true}}
    {"event": "ping"}

Dependencies: pydantic, widgetchat.application.services, widgetchat.api.websocket
System role: Connection Layer event contract
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from widgetchat.api.websocket.connection_manager import ConnectionManager, JSONSender
from widgetchat.application.services.orchestrator import Orchestrator
from widgetchat.application.services.session_manager import SessionManager
from widgetchat.core.exceptions import PersistenceError
from widgetchat.models.events import (
    ClientEventType,
    ClientMessagePayload,
    InitChatPayload,
    ServerEvent,
    ServerEventType,
    TypingPayload,
)
from widgetchat.observability.log_utils import log_exception_with_context, safe_log_value

logger = logging.getLogger(__name__)

INVALID_FRAME_MESSAGE = "Invalid message format"
INVALID_MESSAGE_DATA = "Invalid message data"
NOT_INITIALIZED_MESSAGE = "Session not initialized"
INIT_FAILED_MESSAGE = "Failed to initialize chat"
SESSION_UNAVAILABLE_MESSAGE = "Session not found"


@dataclass
class ConnectionContext:
    """
    State of one client connection.

    Attributes:
        connection_id: Unique id of this connection
        connection: Transport used to send frames to this client
        requested_session_id: Session id sent in the handshake, if any
        user_id: Authenticated user, None for anonymous connections
        session_id: Session assigned by init_chat
        widget_id: Widget sent with init_chat
    """

    connection_id: str
    connection: JSONSender
    requested_session_id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    widget_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class ChatEventHandler:
    """
    Dispatch inbound frames to session and orchestration operations.

    Args:
        sessions: Session Manager
        orchestrator: Message orchestrator
        connections: Room registry used for joins and typing relay
    """

    def __init__(
        self,
        sessions: SessionManager,
        orchestrator: Orchestrator,
        connections: ConnectionManager,
    ) -> None:
        self.sessions = sessions
        self.orchestrator = orchestrator
        self.connections = connections

    async def handle(self, ctx: ConnectionContext, raw: str) -> list[ServerEvent]:
        """
        Handle one raw text frame.

        Returns:
            Replies for the sending connection, in order
        """
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Failed to parse JSON frame",
                extra={"connection_id": ctx.connection_id, "preview": safe_log_value(raw, 50)},
            )
            return [ServerEvent.error(INVALID_FRAME_MESSAGE)]

        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            return [ServerEvent.error(INVALID_FRAME_MESSAGE)]

        data = frame.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return [ServerEvent.error(INVALID_MESSAGE_DATA)]

        event = frame["event"]
        if event == ClientEventType.INIT_CHAT.value:
            return await self.on_init_chat(ctx, data)
        if event == ClientEventType.MESSAGE.value:
            return await self.on_message(ctx, data)
        if event == ClientEventType.TYPING.value:
            return await self.on_typing(ctx, data)
        if event == ClientEventType.PING.value:
            return [ServerEvent(event=ServerEventType.PONG)]

        logger.info("Unknown client event", extra={"event": safe_log_value(event, 50)})
        return [ServerEvent.error(f"Unknown event: {safe_log_value(event, 50)}")]

    async def on_init_chat(self, ctx: ConnectionContext, data: dict[str, Any]) -> list[ServerEvent]:
        """Assign or resume the session, join its room and acknowledge."""
        try:
            payload = InitChatPayload.model_validate(data)
        except PayloadValidationError:
            return [ServerEvent.error(INVALID_MESSAGE_DATA)]

        try:
            outcome = await self.sessions.resume(
                ctx.session_id or ctx.requested_session_id,
                payload.widget_id,
                ctx.user_id,
            )
        except PersistenceError as e:
            log_exception_with_context(
                logger,
                "init_chat failed",
                e,
                connection_id=ctx.connection_id,
                requested_session_id=ctx.requested_session_id,
            )
            return [ServerEvent.error(INIT_FAILED_MESSAGE)]

        session = outcome.session
        if ctx.session_id and ctx.session_id != session.id:
            self.connections.leave(ctx.session_id, ctx.connection_id)
        ctx.session_id = session.id
        ctx.widget_id = session.widget_id
        self.connections.join(session.id, ctx.connection_id, ctx.connection)

        replies = [
            ServerEvent(
                event=ServerEventType.ACK,
                data={
                    "event": ClientEventType.INIT_CHAT.value,
                    "success": True,
                    "sessionId": session.id,
                    "isAuthenticated": ctx.is_authenticated,
                },
            )
        ]
        if outcome.welcome_message is not None:
            replies.append(
                ServerEvent(
                    event=ServerEventType.MESSAGE,
                    data=outcome.welcome_message.to_event_data(),
                )
            )
        logger.info(
            "Chat initialized",
            extra={
                "session_id": session.id,
                "created": outcome.created,
                "authenticated": ctx.is_authenticated,
            },
        )
        return replies

    async def on_message(self, ctx: ConnectionContext, data: dict[str, Any]) -> list[ServerEvent]:
        """Run the orchestration pipeline; results reach the client via the room."""
        if ctx.session_id is None:
            return [ServerEvent.error(NOT_INITIALIZED_MESSAGE)]

        try:
            payload = ClientMessagePayload.model_validate(data)
        except PayloadValidationError:
            return [ServerEvent.error(INVALID_MESSAGE_DATA)]
        if not payload.content.strip():
            return [ServerEvent.error(INVALID_MESSAGE_DATA)]

        if ctx.session_id not in self.sessions:
            try:
                await self.sessions.resume(ctx.session_id, ctx.widget_id, ctx.user_id)
            except PersistenceError as e:
                log_exception_with_context(
                    logger,
                    "Failed to restore evicted session",
                    e,
                    session_id=ctx.session_id,
                )
                return [ServerEvent.error(SESSION_UNAVAILABLE_MESSAGE)]

        await self.orchestrator.handle_message(
            ctx.session_id,
            payload.content,
            payload.attachments or [],
        )
        return []

    async def on_typing(self, ctx: ConnectionContext, data: dict[str, Any]) -> list[ServerEvent]:
        """Relay a typing indicator to the other members of the room."""
        if ctx.session_id is None:
            return []
        try:
            payload = TypingPayload.model_validate(data)
        except PayloadValidationError:
            return [ServerEvent.error(INVALID_MESSAGE_DATA)]
        await self.connections.broadcast(
            ctx.session_id,
            ServerEvent.typing(payload.is_typing, user_id=ctx.user_id),
            exclude=ctx.connection_id,
        )
        return []

    def disconnect(self, ctx: ConnectionContext) -> None:
        """Remove the connection from its room; the session stays live."""
        if ctx.session_id is not None:
            self.connections.leave(ctx.session_id, ctx.connection_id)
