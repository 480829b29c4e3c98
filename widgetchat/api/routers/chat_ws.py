"""
WebSocket chat endpoint.

Routes: WS /ws/chat?sessionId=...&token=...

The route owns the transport loop only: it authenticates the connection
(anonymous when the token is missing or invalid), feeds each text frame to
the event handler and sends back the handler's replies.

Dependencies: fastapi, widgetchat.api.websocket
System role: Connection Layer transport
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from widgetchat.api.deps import ServiceCache, get_service_cache
from widgetchat.api.websocket.event_handler import ConnectionContext
from widgetchat.observability.correlation import clear_correlation_id, set_correlation_id
from widgetchat.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)
router = APIRouter(tags=["chat"])


def _bearer_from_headers(websocket: WebSocket) -> str | None:
    header = websocket.headers.get("authorization", "")
    scheme, _, credential = header.partition(" ")
    if scheme.lower() == "bearer" and credential:
        return credential
    return None


@router.websocket("/ws/chat")
async def websocket_chat(
    websocket: WebSocket,
    session_id: str | None = Query(default=None, alias="sessionId"),
    token: str | None = Query(default=None),
    cache: ServiceCache = Depends(get_service_cache),
) -> None:
    """
    Bidirectional chat connection.

    Client sends:
        {"event": "init_chat", "data": {"widgetId": "..."}}
        {"event": "message", "data": {"content": "...", "attachments": []}}
        {"event": "typing", "data": {"isTyping": true}}
        {"event": "ping"}

    Server sends:
        {"event": "ack", "data": {"event": "init_chat", "success": true, "sessionId": "...", "isAuthenticated": false}}
        {"event": "message", "data": {"id": "...", "sessionId": "...", "content": "...", "role": "...", "timestamp": "..."}}
        {"event": "typing", "data": {"isTyping": true}}
        {"event": "error", "data": {"message": "..."}}
        {"event": "pong", "data": {}}
    """
    connection_id = uuid.uuid4().hex
    set_correlation_id(connection_id)
    await websocket.accept()

    user = await cache.token_verifier.authenticate_optional(token or _bearer_from_headers(websocket))
    ctx = ConnectionContext(
        connection_id=connection_id,
        connection=websocket,
        requested_session_id=session_id or None,
        user_id=user.user_id if user is not None else None,
    )
    handler = cache.event_handler
    logger.info(
        "WebSocket connection established",
        extra={
            "connection_id": connection_id,
            "requested_session_id": session_id,
            "authenticated": ctx.is_authenticated,
        },
    )

    try:
        while True:
            raw = await websocket.receive_text()
            replies = await handler.handle(ctx, raw)
            for reply in replies:
                await websocket.send_json(reply.to_dict())
    except WebSocketDisconnect:
        logger.info(
            "WebSocket disconnected",
            extra={"connection_id": connection_id, "session_id": ctx.session_id},
        )
    except Exception as e:
        log_exception_with_context(
            logger,
            "WebSocket connection failed",
            e,
            connection_id=connection_id,
            session_id=ctx.session_id,
        )
    finally:
        handler.disconnect(ctx)
        clear_correlation_id()
