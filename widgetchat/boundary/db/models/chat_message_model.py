"""
Chat message ORM model.

Messages are immutable once written. Ordering is by created_at with the
integer insertion sequence as tie-breaker.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Durable message log
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, new_id, utc_now


class ChatMessageModel(Base):
    """
    Chat message row.

    Attributes:
        seq: Insertion sequence (primary key), ordering tie-breaker
        id: Opaque public message id
        session_id: Owning chat session
        content: Message text
        role: "user", "assistant" or "system"
        attachments: Optional attachment descriptors
        created_at: Creation timestamp (UTC)
    """

    __tablename__ = "chat_messages"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, default=new_id)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    attachments: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
