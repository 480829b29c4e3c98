"""
Chat message CRUD operations.

Messages are insert-only. Every read orders by created_at with the insertion
sequence as tie-breaker.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Durable message log
"""

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.models.chat_message_model import ChatMessageModel
from widgetchat.models.chat import ChatMessage


def _row_from_message(message: ChatMessage) -> ChatMessageModel:
    return ChatMessageModel(
        id=message.id,
        session_id=message.session_id,
        content=message.content,
        role=message.role.value,
        attachments=list(message.attachments) or None,
        created_at=message.timestamp,
    )


class ChatMessageCRUD(BaseCRUD[ChatMessageModel]):
    """CRUD operations for ChatMessageModel."""

    def __init__(self) -> None:
        """Initialize ChatMessageCRUD with ChatMessageModel."""
        super().__init__(ChatMessageModel)

    async def add_message(self, session: AsyncSession, message: ChatMessage) -> ChatMessageModel:
        """Insert a single message row."""
        row = _row_from_message(message)
        session.add(row)
        await session.flush()
        return row

    async def insert_exchange(
        self,
        session: AsyncSession,
        user_message: ChatMessage,
        assistant_message: ChatMessage,
    ) -> tuple[ChatMessageModel, ChatMessageModel]:
        """
        Insert a user message and its assistant reply.

        The user row is flushed first so it gets the lower sequence. The
        caller owns the transaction, so either both rows commit or neither.

        Args:
            session: Async database session inside a transaction
            user_message: Inbound message
            assistant_message: Filtered reply

        Returns:
            Tuple of (user row, assistant row)
        """
        user_row = _row_from_message(user_message)
        assistant_row = _row_from_message(assistant_message)
        session.add(user_row)
        await session.flush()
        session.add(assistant_row)
        await session.flush()
        return user_row, assistant_row

    async def list_for_session(
        self,
        session: AsyncSession,
        session_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ChatMessageModel]:
        """
        Retrieve a session's messages in log order.

        Args:
            session: Async database session
            session_id: Chat session id
            limit: Maximum messages to return (None for all)
            offset: Messages to skip

        Returns:
            Messages ordered oldest first
        """
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at, ChatMessageModel.seq)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_recent(
        self,
        session: AsyncSession,
        session_id: str,
        limit: int,
    ) -> list[ChatMessageModel]:
        """
        Retrieve the latest `limit` messages of a session, oldest first.

        Used to rebuild the in-memory history buffer of a rehydrated session.
        """
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at.desc(), ChatMessageModel.seq.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def count_for_session(self, session: AsyncSession, session_id: str) -> int:
        """Count stored messages of a session."""
        stmt = select(func.count(ChatMessageModel.seq)).where(
            ChatMessageModel.session_id == session_id
        )
        result = await session.execute(stmt)
        return result.scalar_one()


chat_message_crud = ChatMessageCRUD()
