"""
AI interaction log ORM model.

Append-only audit trail of model calls; rows are never updated.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Analytics persistence for orchestrated responses
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, IDMixin, utc_now


class AIInteractionLogModel(Base, IDMixin):
    """
    One orchestrated model interaction.

    Attributes:
        user_id: Authenticated user, None for anonymous sessions
        session_id: Chat session the interaction belongs to
        query: Raw user message
        response: Final (filtered) response
        model_used: Provider id or "fallback"
        context_rule_id: Rule applied, if any
        interaction_metadata: Token counts, processing time (column "metadata")
    """

    __tablename__ = "ai_interaction_logs"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)
    model_used: Mapped[str] = mapped_column(String(50), nullable=False)
    context_rule_id: Mapped[str | None] = mapped_column(
        ForeignKey("context_rules.id", ondelete="SET NULL"),
        nullable=True,
    )
    interaction_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
