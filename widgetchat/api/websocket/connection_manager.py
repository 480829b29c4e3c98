"""
WebSocket connection manager.

Tracks session rooms: the live connections joined to each chat session.
Broadcast delivers an event to every member of a room; a connection that
fails to receive is dropped from its room.

Dependencies: fastapi, widgetchat.models.events
System role: Connection Layer fan-out
"""

import logging
from typing import Any, Protocol

from widgetchat.models.events import ServerEvent
from widgetchat.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


class JSONSender(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionManager:
    """Session rooms keyed by session id, members keyed by connection id."""

    def __init__(self) -> None:
        self._rooms: dict[str, dict[str, JSONSender]] = {}

    def join(self, session_id: str, connection_id: str, connection: JSONSender) -> None:
        self._rooms.setdefault(session_id, {})[connection_id] = connection
        log_with_context(
            logger,
            logging.DEBUG,
            "Connection joined session room",
            session_id=session_id,
            connection_id=connection_id,
            members=len(self._rooms[session_id]),
        )

    def leave(self, session_id: str, connection_id: str) -> None:
        room = self._rooms.get(session_id)
        if room is None:
            return
        room.pop(connection_id, None)
        if not room:
            del self._rooms[session_id]

    def members(self, session_id: str) -> list[str]:
        return list(self._rooms.get(session_id, {}))

    def room_count(self) -> int:
        return len(self._rooms)

    async def send(self, connection: JSONSender, event: ServerEvent) -> None:
        await connection.send_json(event.to_dict())

    async def broadcast(
        self,
        session_id: str,
        event: ServerEvent,
        exclude: str | None = None,
    ) -> int:
        """
        Send an event to every connection in a session room.

        Args:
            session_id: Room to deliver to
            event: Event frame
            exclude: Connection id to skip (the sender of a relayed event)

        Returns:
            Number of connections that received the event
        """
        delivered = 0
        payload = event.to_dict()
        for connection_id, connection in list(self._rooms.get(session_id, {}).items()):
            if connection_id == exclude:
                continue
            try:
                await connection.send_json(payload)
            except Exception as e:
                log_with_context(
                    logger,
                    logging.WARNING,
                    "Dropping connection after failed send",
                    session_id=session_id,
                    connection_id=connection_id,
                    error_type=type(e).__name__,
                )
                self.leave(session_id, connection_id)
                continue
            delivered += 1
        return delivered
