"""
Tests for ChatEventHandler dispatch.

Dependencies: pytest, pytest-asyncio, widgetchat.api.websocket
System role: Connection Layer event contract verification
"""

import json
from datetime import timedelta

import pytest

from widgetchat.api.websocket import ChatEventHandler, ConnectionContext, ConnectionManager


class NullConnection:
    async def send_json(self, data) -> None:
        return None


@pytest.fixture
def handler(session_manager, orchestrator) -> ChatEventHandler:
    return ChatEventHandler(
        sessions=session_manager,
        orchestrator=orchestrator,
        connections=ConnectionManager(),
    )


def frame(event: str, **data) -> str:
    return json.dumps({"event": event, "data": data})


class TestChatEventHandler:
    """Test suite for ChatEventHandler.handle."""

    async def test_init_chat_should_join_room(self, handler):
        # Arrange
        ctx = ConnectionContext(connection_id="c1", connection=NullConnection(), requested_session_id="s1")

        # Act
        replies = await handler.handle(ctx, frame("init_chat"))

        # Assert
        assert replies[0].data["sessionId"] == "s1"
        assert ctx.session_id == "s1"
        assert handler.connections.members("s1") == ["c1"]

    async def test_message_after_eviction_should_rehydrate_session(
        self, handler, session_manager, broadcaster
    ):
        # Arrange
        ctx = ConnectionContext(connection_id="c1", connection=NullConnection(), requested_session_id="s1")
        await handler.handle(ctx, frame("init_chat"))
        session_manager.evict_idle(idle_threshold=timedelta(seconds=-1))

        # Act
        replies = await handler.handle(ctx, frame("message", content="Still there?"))

        # Assert
        assert replies == []
        assert "s1" in session_manager
        assert broadcaster.names() == ["typing", "message", "message", "typing"]

    async def test_typing_before_init_should_be_ignored(self, handler):
        ctx = ConnectionContext(connection_id="c1", connection=NullConnection())

        assert await handler.handle(ctx, frame("typing", isTyping=True)) == []

    async def test_disconnect_should_leave_room_but_keep_session(self, handler, session_manager):
        ctx = ConnectionContext(connection_id="c1", connection=NullConnection(), requested_session_id="s1")
        await handler.handle(ctx, frame("init_chat"))

        handler.disconnect(ctx)

        assert handler.connections.members("s1") == []
        assert "s1" in session_manager
