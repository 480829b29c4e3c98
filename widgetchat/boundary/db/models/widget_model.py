"""
Widget configuration ORM model.

Only the behavioral binding is modelled here (context rule and welcome
message); appearance settings are owned by the widget management API.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Widget binding lookup for chat sessions
"""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, IDMixin, TimestampMixin


class WidgetConfigModel(Base, IDMixin, TimestampMixin):
    """
    Embeddable chat widget binding.

    Attributes:
        id: String primary key
        user_id: Owning operator
        name: Widget display name
        context_rule_id: Rule applied to every message of the widget's sessions
        welcome_message: Assistant message synthesized for fresh sessions
    """

    __tablename__ = "widget_configs"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    context_rule_id: Mapped[str | None] = mapped_column(
        ForeignKey("context_rules.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
    )
    welcome_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
