"""
Knowledge base ORM models.

Knowledge bases group documents; documents are read-only from the
retriever's perspective. Query logs record every knowledge API query.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Knowledge Retriever persistence
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from widgetchat.boundary.db.base import Base, IDMixin, TimestampMixin, utc_now


class KnowledgeBaseModel(Base, IDMixin, TimestampMixin):
    """Named collection of retrievable documents."""

    __tablename__ = "knowledge_bases"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    documents = relationship(
        "KnowledgeDocumentModel",
        back_populates="knowledge_base",
        cascade="all, delete-orphan",
    )


class KnowledgeDocumentModel(Base, IDMixin, TimestampMixin):
    """
    Single knowledge document.

    Attributes:
        knowledge_base_id: Owning knowledge base
        title: Optional title, matches rank before content-only matches
        content: Document text
        source_url: Optional origin of the document
        document_metadata: Free-form metadata (column "metadata")
    """

    __tablename__ = "knowledge_base_documents"

    knowledge_base_id: Mapped[str] = mapped_column(
        ForeignKey("knowledge_bases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    knowledge_base = relationship("KnowledgeBaseModel", back_populates="documents")


class KnowledgeQueryLogModel(Base, IDMixin):
    """Append-only record of a knowledge query."""

    __tablename__ = "knowledge_base_query_logs"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    query: Mapped[str] = mapped_column(Text, nullable=False)
    results_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    knowledge_base_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
