"""
Database models package.

Exports:
  - UserModel: Account lookup for auth
  - WidgetConfigModel: Widget binding (context rule, welcome message)
  - ContextRuleModel: Policy Store rows
  - KnowledgeBaseModel, KnowledgeDocumentModel, KnowledgeQueryLogModel: Knowledge storage
  - ChatSessionModel, ChatMessageModel: Durable message log
  - AIInteractionLogModel: Interaction audit trail

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Database model definitions for domain entities
"""

from widgetchat.boundary.db.models.user_model import UserModel
from widgetchat.boundary.db.models.context_rule_model import ContextRuleModel
from widgetchat.boundary.db.models.widget_model import WidgetConfigModel
from widgetchat.boundary.db.models.knowledge_model import (
    KnowledgeBaseModel,
    KnowledgeDocumentModel,
    KnowledgeQueryLogModel,
)
from widgetchat.boundary.db.models.chat_session_model import ChatSessionModel
from widgetchat.boundary.db.models.chat_message_model import ChatMessageModel
from widgetchat.boundary.db.models.ai_interaction_model import AIInteractionLogModel

__all__ = [
    "UserModel",
    "ContextRuleModel",
    "WidgetConfigModel",
    "KnowledgeBaseModel",
    "KnowledgeDocumentModel",
    "KnowledgeQueryLogModel",
    "ChatSessionModel",
    "ChatMessageModel",
    "AIInteractionLogModel",
]
