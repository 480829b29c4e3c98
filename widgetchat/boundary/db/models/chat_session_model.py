"""
Chat session ORM model.

Durable record of a chat session. Rows are retained after the in-memory
session is evicted; retention is handled by an external cleanup job.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Session persistence for the durable message log
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, IDMixin, utc_now


class ChatSessionModel(Base, IDMixin):
    """
    Chat session row.

    Attributes:
        id: Client-supplied or generated opaque id
        user_id: Authenticated owner, None for anonymous sessions
        widget_id: Widget binding, None when the client sent no widget
        created_at: Session creation time (UTC)
        last_activity: Time of the last persisted exchange (UTC)
        session_metadata: Free-form metadata (column "metadata")
    """

    __tablename__ = "chat_sessions"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    widget_id: Mapped[str | None] = mapped_column(
        ForeignKey("widget_configs.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    session_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
