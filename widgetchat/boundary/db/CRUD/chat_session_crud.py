"""
Chat session CRUD operations.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Durable session rows for the Session Manager and history API
"""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.models.chat_message_model import ChatMessageModel
from widgetchat.boundary.db.models.chat_session_model import ChatSessionModel


class ChatSessionCRUD(BaseCRUD[ChatSessionModel]):
    """CRUD operations for ChatSessionModel."""

    def __init__(self) -> None:
        """Initialize ChatSessionCRUD with ChatSessionModel."""
        super().__init__(ChatSessionModel)

    async def touch(self, session: AsyncSession, id: str, at: datetime) -> None:
        """
        Move last_activity forward to `at`.

        The update is skipped when the stored value is already later, so
        last_activity never decreases.

        Args:
            session: Async database session
            id: Chat session id
            at: New activity time
        """
        stmt = (
            update(ChatSessionModel)
            .where(ChatSessionModel.id == id, ChatSessionModel.last_activity <= at)
            .values(last_activity=at)
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)

    async def list_for_user(
        self,
        session: AsyncSession,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        List a user's sessions, most recent activity first.

        Each entry carries the message count and the content of the first
        stored message.

        Args:
            session: Async database session
            user_id: Owning user
            limit: Maximum sessions to return
            offset: Sessions to skip

        Returns:
            List of session summary dicts
        """
        count_subq = (
            select(func.count(ChatMessageModel.seq))
            .where(ChatMessageModel.session_id == ChatSessionModel.id)
            .correlate(ChatSessionModel)
            .scalar_subquery()
        )
        first_subq = (
            select(ChatMessageModel.content)
            .where(ChatMessageModel.session_id == ChatSessionModel.id)
            .order_by(ChatMessageModel.created_at, ChatMessageModel.seq)
            .limit(1)
            .correlate(ChatSessionModel)
            .scalar_subquery()
        )
        stmt = (
            select(ChatSessionModel, count_subq.label("message_count"), first_subq.label("first_message"))
            .where(ChatSessionModel.user_id == user_id)
            .order_by(ChatSessionModel.last_activity.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)

        return [
            {
                "id": row.ChatSessionModel.id,
                "user_id": row.ChatSessionModel.user_id,
                "widget_id": row.ChatSessionModel.widget_id,
                "created_at": row.ChatSessionModel.created_at,
                "last_activity": row.ChatSessionModel.last_activity,
                "message_count": row.message_count or 0,
                "first_message": row.first_message,
            }
            for row in result.all()
        ]


chat_session_crud = ChatSessionCRUD()
