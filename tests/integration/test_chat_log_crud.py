"""
Integration tests for chat session and chat message CRUD operations.

Tests log ordering, the non-decreasing activity update and the
per-user session listing.

Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Durable message log verification
"""

from datetime import datetime, timedelta, timezone

import pytest

from widgetchat.application.services.session_manager import ensure_utc
from widgetchat.boundary.db.CRUD import chat_message_crud, chat_session_crud
from widgetchat.models.chat import ChatMessage, MessageRole

T0 = datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)


def message(id: str, content: str, role: MessageRole, at: datetime, session_id: str = "s1") -> ChatMessage:
    return ChatMessage(id=id, session_id=session_id, content=content, role=role, timestamp=at)


@pytest.fixture
async def chat_session(test_async_db):
    """Stored chat session s1 with last_activity T0."""
    return await chat_session_crud.create(
        test_async_db,
        id="s1",
        user_id="u1",
        created_at=T0,
        last_activity=T0,
    )


class TestChatMessageCRUD:
    """Test suite for ChatMessageCRUD."""

    async def test_insert_exchange_should_keep_user_before_assistant_on_equal_timestamps(
        self, test_async_db, chat_session
    ):
        # Arrange
        user = message("m-user", "Question", MessageRole.USER, T0)
        assistant = message("m-bot", "Answer", MessageRole.ASSISTANT, T0)

        # Act
        user_row, assistant_row = await chat_message_crud.insert_exchange(test_async_db, user, assistant)
        rows = await chat_message_crud.list_for_session(test_async_db, "s1")

        # Assert
        assert user_row.seq < assistant_row.seq
        assert [r.id for r in rows] == ["m-user", "m-bot"]

    async def test_get_recent_should_return_latest_oldest_first(self, test_async_db, chat_session):
        # Arrange
        for i in range(5):
            await chat_message_crud.add_message(
                test_async_db,
                message(f"m{i}", f"text {i}", MessageRole.USER, T0 + timedelta(seconds=i)),
            )

        # Act
        recent = await chat_message_crud.get_recent(test_async_db, "s1", limit=3)

        # Assert
        assert [r.id for r in recent] == ["m2", "m3", "m4"]
        assert await chat_message_crud.count_for_session(test_async_db, "s1") == 5

    async def test_attachments_should_round_trip(self, test_async_db, chat_session):
        msg = ChatMessage(
            id="m-att",
            session_id="s1",
            content="See file",
            role=MessageRole.USER,
            attachments=[{"name": "invoice.pdf"}],
            timestamp=T0,
        )

        row = await chat_message_crud.add_message(test_async_db, msg)

        assert row.attachments == [{"name": "invoice.pdf"}]


class TestChatSessionCRUD:
    """Test suite for ChatSessionCRUD."""

    async def test_touch_should_move_activity_forward(self, test_async_db, chat_session):
        later = T0 + timedelta(minutes=5)

        await chat_session_crud.touch(test_async_db, "s1", later)
        await test_async_db.refresh(chat_session)

        assert ensure_utc(chat_session.last_activity) == later

    async def test_touch_should_never_move_activity_backwards(self, test_async_db, chat_session):
        await chat_session_crud.touch(test_async_db, "s1", T0 + timedelta(minutes=5))

        await chat_session_crud.touch(test_async_db, "s1", T0)
        await test_async_db.refresh(chat_session)

        assert ensure_utc(chat_session.last_activity) == T0 + timedelta(minutes=5)

    async def test_list_for_user_should_include_counts(self, test_async_db, chat_session):
        # Arrange
        await chat_session_crud.create(
            test_async_db,
            id="s2",
            user_id="u1",
            created_at=T0,
            last_activity=T0 + timedelta(hours=2),
        )
        await chat_message_crud.add_message(
            test_async_db, message("m1", "First words", MessageRole.USER, T0)
        )
        await chat_message_crud.add_message(
            test_async_db, message("m2", "Reply", MessageRole.ASSISTANT, T0 + timedelta(seconds=1))
        )

        # Act
        rows = await chat_session_crud.list_for_user(test_async_db, "u1")

        # Assert
        assert [r["id"] for r in rows] == ["s2", "s1"]
        assert rows[1]["message_count"] == 2
        assert rows[1]["first_message"] == "First words"
        assert rows[0]["first_message"] is None
