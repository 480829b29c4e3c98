"""
Tests for the WebSocket chat endpoint.

Drives the full connection flow through the TestClient: init_chat, chat
messages, typing relay, ping and malformed frames.

Dependencies: pytest, fastapi.testclient, PyJWT
System role: Connection Layer verification
"""

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from widgetchat.boundary.db.models import (
    ChatMessageModel,
    ChatSessionModel,
    ContextRuleModel,
    UserModel,
    WidgetConfigModel,
)


@pytest.fixture
def widget(api_env):
    """Widget w1 with a welcome message, bound to a rule that appends a footer."""
    api_env.add(
        UserModel(id="u1", email="u1@example.com"),
        ContextRuleModel(
            id="r1",
            name="Support",
            response_filters=[{"type": "append", "text": "-- Acme Support"}],
        ),
    )
    api_env.add(WidgetConfigModel(id="w1", name="Support", context_rule_id="r1", welcome_message="Hi!"))
    return api_env


def stored_messages(env, session_id: str) -> list[tuple[str, str]]:
    with Session(env.engine) as session:
        rows = session.execute(
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at, ChatMessageModel.seq)
        ).scalars()
        return [(row.role, row.content) for row in rows]


class TestInitChat:
    """Test suite for the init_chat event."""

    def test_init_chat_should_ack_and_send_welcome(self, widget):
        with widget.client.websocket_connect("/ws/chat?sessionId=s-ws") as ws:
            # Act
            ws.send_json({"event": "init_chat", "data": {"widgetId": "w1"}})
            ack = ws.receive_json()
            welcome = ws.receive_json()

        # Assert
        assert ack == {
            "event": "ack",
            "data": {"event": "init_chat", "success": True, "sessionId": "s-ws", "isAuthenticated": False},
        }
        assert welcome["event"] == "message"
        assert welcome["data"]["content"] == "Hi!"
        assert welcome["data"]["role"] == "assistant"
        assert stored_messages(widget, "s-ws") == [("assistant", "Hi!")]

    def test_reconnect_should_not_repeat_welcome(self, widget):
        with widget.client.websocket_connect("/ws/chat?sessionId=s-ws") as ws:
            ws.send_json({"event": "init_chat", "data": {"widgetId": "w1"}})
            ws.receive_json()
            ws.receive_json()

        with widget.client.websocket_connect("/ws/chat?sessionId=s-ws") as ws:
            ws.send_json({"event": "init_chat", "data": {"widgetId": "w1"}})
            ack = ws.receive_json()
            ws.send_json({"event": "ping"})
            follow_up = ws.receive_json()

        assert ack["data"]["sessionId"] == "s-ws"
        assert follow_up["event"] == "pong"
        assert stored_messages(widget, "s-ws") == [("assistant", "Hi!")]

    def test_without_session_id_should_generate_one(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "init_chat", "data": {}})
            ack = ws.receive_json()

        assert ack["data"]["success"] is True
        assert ack["data"]["sessionId"]

    def test_valid_token_should_authenticate_connection(self, widget):
        token_url = f"/ws/chat?sessionId=s-auth&token={widget.auth('u1')['Authorization'].split()[1]}"

        with widget.client.websocket_connect(token_url) as ws:
            ws.send_json({"event": "init_chat", "data": {}})
            ack = ws.receive_json()

        assert ack["data"]["isAuthenticated"] is True
        with Session(widget.engine) as session:
            assert session.get(ChatSessionModel, "s-auth").user_id == "u1"

    def test_invalid_token_should_connect_anonymously(self, widget):
        with widget.client.websocket_connect("/ws/chat?token=garbage") as ws:
            ws.send_json({"event": "init_chat", "data": {}})
            ack = ws.receive_json()

        assert ack["data"]["isAuthenticated"] is False


class TestMessages:
    """Test suite for chat message events."""

    def test_message_should_broadcast_typing_and_both_messages(self, widget):
        with widget.client.websocket_connect("/ws/chat?sessionId=s-ws") as ws:
            ws.send_json({"event": "init_chat", "data": {"widgetId": "w1"}})
            ws.receive_json()
            ws.receive_json()

            # Act
            ws.send_json({"event": "message", "data": {"content": "Where is my order?"}})
            frames = [ws.receive_json() for _ in range(4)]

        # Assert
        assert [f["event"] for f in frames] == ["typing", "message", "message", "typing"]
        assert frames[0]["data"]["isTyping"] is True
        assert frames[1]["data"]["content"] == "Where is my order?"
        assert frames[2]["data"]["content"] == "Hello from primary\n\n-- Acme Support"
        assert frames[3]["data"]["isTyping"] is False
        assert stored_messages(widget, "s-ws") == [
            ("assistant", "Hi!"),
            ("user", "Where is my order?"),
            ("assistant", "Hello from primary\n\n-- Acme Support"),
        ]

    def test_message_should_reach_every_connection_in_room(self, widget):
        with widget.client.websocket_connect("/ws/chat?sessionId=s-room") as first:
            first.send_json({"event": "init_chat", "data": {}})
            first.receive_json()
            with widget.client.websocket_connect("/ws/chat?sessionId=s-room") as second:
                second.send_json({"event": "init_chat", "data": {}})
                second.receive_json()

                second.send_json({"event": "typing", "data": {"isTyping": True}})
                relayed = first.receive_json()

                first.send_json({"event": "message", "data": {"content": "Hi both"}})
                first_frames = [first.receive_json() for _ in range(4)]
                second_frames = [second.receive_json() for _ in range(4)]

        assert relayed == {"event": "typing", "data": {"isTyping": True}}
        assert first_frames == second_frames

    def test_message_before_init_should_return_error(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "message", "data": {"content": "Hi"}})
            reply = ws.receive_json()

        assert reply == {"event": "error", "data": {"message": "Session not initialized"}}

    def test_empty_message_should_return_error(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "init_chat", "data": {}})
            ws.receive_json()
            ws.send_json({"event": "message", "data": {"content": "   "}})
            reply = ws.receive_json()

        assert reply == {"event": "error", "data": {"message": "Invalid message data"}}


class TestFrames:
    """Test suite for frame parsing."""

    def test_ping_should_return_pong(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "ping"})
            assert ws.receive_json() == {"event": "pong", "data": {}}

    def test_malformed_json_should_return_error_and_keep_connection(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_text("{not json")
            error = ws.receive_json()
            ws.send_json({"event": "ping"})
            pong = ws.receive_json()

        assert error == {"event": "error", "data": {"message": "Invalid message format"}}
        assert pong["event"] == "pong"

    def test_unknown_event_should_return_error(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "dance"})
            reply = ws.receive_json()

        assert reply == {"event": "error", "data": {"message": "Unknown event: dance"}}

    def test_non_object_data_should_return_error(self, widget):
        with widget.client.websocket_connect("/ws/chat") as ws:
            ws.send_json({"event": "message", "data": "Hi"})
            reply = ws.receive_json()

        assert reply == {"event": "error", "data": {"message": "Invalid message data"}}
