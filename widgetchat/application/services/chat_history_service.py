"""
Chat history service.

Read-only access to stored chat sessions and their ordered messages.

Dependencies: sqlalchemy, widgetchat.boundary.db
System role: Chat history API business logic
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.application.services.session_manager import ensure_utc
from widgetchat.boundary.db.CRUD.chat_message_crud import chat_message_crud
from widgetchat.boundary.db.CRUD.chat_session_crud import chat_session_crud
from widgetchat.core.exceptions import SessionNotFoundError
from widgetchat.models.chat import (
    ChatMessageResponse,
    ChatSessionDetailResponse,
    ChatSessionResponse,
)

logger = logging.getLogger(__name__)


class ChatHistoryService:
    """Stored session queries scoped to the requesting user."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize chat history service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def list_sessions(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ChatSessionResponse]:
        """
        List the user's sessions, most recent activity first.

        Args:
            user_id: Authenticated user id
            limit: Maximum sessions
            offset: Sessions to skip

        Returns:
            Session summaries with message count and first message
        """
        rows = await chat_session_crud.list_for_user(self.db, user_id, limit=limit, offset=offset)
        return [
            ChatSessionResponse(
                **{
                    **row,
                    "created_at": ensure_utc(row["created_at"]),
                    "last_activity": ensure_utc(row["last_activity"]),
                }
            )
            for row in rows
        ]

    async def get_session(
        self,
        session_id: str,
        user_id: str | None = None,
    ) -> ChatSessionDetailResponse:
        """
        Get a stored session with its messages in log order.

        Authenticated callers see their own sessions and anonymous ones;
        anonymous callers see anonymous sessions only.

        Raises:
            SessionNotFoundError: If the session does not exist or is not visible
        """
        row = await chat_session_crud.get_by_id(self.db, session_id)
        if row is None or (row.user_id is not None and row.user_id != user_id):
            raise SessionNotFoundError(session_id)

        messages = await chat_message_crud.list_for_session(self.db, session_id)
        items = [
            ChatMessageResponse(
                id=m.id,
                role=m.role,
                content=m.content,
                attachments=m.attachments or [],
                created_at=ensure_utc(m.created_at),
            )
            for m in messages
        ]
        summary = ChatSessionResponse(
            id=row.id,
            user_id=row.user_id,
            widget_id=row.widget_id,
            created_at=ensure_utc(row.created_at),
            last_activity=ensure_utc(row.last_activity),
            message_count=len(items),
            first_message=items[0].content if items else None,
        )
        return ChatSessionDetailResponse(session=summary, messages=items, total=len(items))
