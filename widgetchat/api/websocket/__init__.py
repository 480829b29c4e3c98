"""WebSocket connection layer."""

from widgetchat.api.websocket.connection_manager import ConnectionManager
from widgetchat.api.websocket.event_handler import ChatEventHandler, ConnectionContext

__all__ = ["ChatEventHandler", "ConnectionContext", "ConnectionManager"]
