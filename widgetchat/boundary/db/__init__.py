"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, IDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - CRUD singletons for every entity

Dependencies: sqlalchemy, widgetchat.configs
System role: Durable storage for sessions, messages, rules, knowledge and audit logs
"""

from widgetchat.boundary.db.base import Base, IDMixin, TimestampMixin
from widgetchat.boundary.db.connection import (
    dispose_engine,
    get_async_engine,
    get_async_session_factory,
)
from widgetchat.boundary.db.CRUD import (
    BaseCRUD,
    ai_interaction_crud,
    chat_message_crud,
    chat_session_crud,
    context_rule_crud,
    knowledge_base_crud,
    knowledge_document_crud,
    knowledge_query_log_crud,
    user_crud,
    widget_crud,
)

__all__ = [
    # Base classes
    "Base",
    "IDMixin",
    "TimestampMixin",
    # Connection
    "dispose_engine",
    "get_async_engine",
    "get_async_session_factory",
    # CRUD
    "BaseCRUD",
    "ai_interaction_crud",
    "chat_message_crud",
    "chat_session_crud",
    "context_rule_crud",
    "knowledge_base_crud",
    "knowledge_document_crud",
    "knowledge_query_log_crud",
    "user_crud",
    "widget_crud",
]
