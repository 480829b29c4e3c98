"""
CRUD operations package.

Model-specific CRUD singletons built on BaseCRUD. Methods flush but never
commit; callers own the transaction.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Data access layer
"""

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.CRUD.user_crud import user_crud
from widgetchat.boundary.db.CRUD.widget_crud import widget_crud
from widgetchat.boundary.db.CRUD.context_rule_crud import context_rule_crud
from widgetchat.boundary.db.CRUD.knowledge_crud import (
    knowledge_base_crud,
    knowledge_document_crud,
    knowledge_query_log_crud,
)
from widgetchat.boundary.db.CRUD.chat_session_crud import chat_session_crud
from widgetchat.boundary.db.CRUD.chat_message_crud import chat_message_crud
from widgetchat.boundary.db.CRUD.ai_interaction_crud import ai_interaction_crud

__all__ = [
    "BaseCRUD",
    "user_crud",
    "widget_crud",
    "context_rule_crud",
    "knowledge_base_crud",
    "knowledge_document_crud",
    "knowledge_query_log_crud",
    "chat_session_crud",
    "chat_message_crud",
    "ai_interaction_crud",
]
