"""Service orchestrators."""

from .chat_history_service import ChatHistoryService
from .knowledge_retriever import KnowledgeRetriever
from .knowledge_service import KnowledgeService
from .orchestrator import OrchestrationResult, Orchestrator, PipelineStage
from .policy_store import PolicyStore
from .session_manager import ResumeOutcome, SessionHandle, SessionManager

__all__ = [
    "ChatHistoryService",
    "KnowledgeRetriever",
    "KnowledgeService",
    "OrchestrationResult",
    "Orchestrator",
    "PipelineStage",
    "PolicyStore",
    "ResumeOutcome",
    "SessionHandle",
    "SessionManager",
]
