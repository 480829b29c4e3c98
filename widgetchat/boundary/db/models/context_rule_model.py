"""
Context rule ORM model.

List-valued fields are JSON columns; they are plain Python lists on the model
and never handled as serialized text by business logic.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Policy Store persistence
"""

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, IDMixin, TimestampMixin


class ContextRuleModel(Base, IDMixin, TimestampMixin):
    """
    Operator-defined behavioral policy for a chat widget.

    Attributes:
        name: Rule name
        description: Free-form description
        is_active: Inactive rules resolve as "no rule"
        context_type: Operator category (e.g. "business", "general")
        keywords: Trigger keywords
        excluded_topics: Topics the assistant must not discuss
        prompt_template: Template with {{message}} / {{variable}} placeholders
        response_filters: Ordered list of filter dicts
        use_knowledge_bases: Enables knowledge retrieval for this rule
        knowledge_base_ids: Knowledge bases searched when enabled
        preferred_model: Provider id overriding the default model
        version: Incremented on every update, starts at 1
    """

    __tablename__ = "context_rules"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    context_type: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    excluded_topics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    prompt_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_filters: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    use_knowledge_bases: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    knowledge_base_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    preferred_model: Mapped[str | None] = mapped_column(String(50), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
