"""
Message orchestration pipeline.

Drives one inbound chat message end to end:

    Received -> RuleResolved -> ContextGathered -> ModelInvoked -> Filtered
             -> Persisted -> Broadcast -> Done

with ErrorReported reachable from every stage after Received. Messages of one
session are processed one at a time under the session lock. Broadcast happens
only after the user/assistant pair is durably written; completed side effects
are never rolled back.

Dependencies: sqlalchemy, widgetchat.application.services, widgetchat.core
System role: Orchestrator between the connection layer and the pipeline stages
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.application.services.knowledge_retriever import KnowledgeRetriever
from widgetchat.application.services.policy_store import PolicyStore
from widgetchat.application.services.session_manager import SessionHandle, SessionManager
from widgetchat.boundary.db.base import new_id, utc_now
from widgetchat.boundary.db.CRUD.ai_interaction_crud import ai_interaction_crud
from widgetchat.boundary.db.CRUD.chat_message_crud import chat_message_crud
from widgetchat.boundary.db.CRUD.chat_session_crud import chat_session_crud
from widgetchat.core.exceptions import (
    InteractionLogError,
    PersistenceError,
    SessionNotFoundError,
)
from widgetchat.core.model_gateway import FALLBACK_MODEL_ID, GenerationResult, ModelGateway
from widgetchat.core.prompt_builder import build_prompt
from widgetchat.core.response_filter import ResponseFilter
from widgetchat.models.chat import ChatMessage, MessageRole
from widgetchat.models.context_rule import ContextRule
from widgetchat.models.events import ServerEvent, ServerEventType

logger = logging.getLogger(__name__)

PROCESSING_ERROR_MESSAGE = "Failed to process your message"
PERSISTENCE_ERROR_MESSAGE = "Failed to save your message"
SESSION_NOT_FOUND_MESSAGE = "Session not found"


class PipelineStage(str, Enum):
    """Orchestration states per inbound message."""

    RECEIVED = "received"
    RULE_RESOLVED = "rule_resolved"
    CONTEXT_GATHERED = "context_gathered"
    MODEL_INVOKED = "model_invoked"
    FILTERED = "filtered"
    PERSISTED = "persisted"
    BROADCAST = "broadcast"
    DONE = "done"
    ERROR_REPORTED = "error_reported"


class Broadcaster(Protocol):
    """Delivers server events to every connection joined to a session room."""

    async def broadcast(
        self,
        session_id: str,
        event: ServerEvent,
        exclude: Any = None,
    ) -> int: ...


@dataclass(frozen=True)
class OrchestrationResult:
    """
    Outcome of one orchestrated message.

    Attributes:
        stage: DONE, or ERROR_REPORTED
        failed_stage: Stage the pipeline was in when it failed
        user_message: Persisted user message
        assistant_message: Persisted assistant message
        model_used: Provider id, or "fallback"
        error: Error class name when the pipeline failed
    """

    stage: PipelineStage
    failed_stage: PipelineStage | None = None
    user_message: ChatMessage | None = None
    assistant_message: ChatMessage | None = None
    model_used: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.stage == PipelineStage.DONE


class Orchestrator:
    """
    Coordinates Policy Store, Knowledge Retriever, Model Gateway, Response
    Filter, persistence and broadcast for inbound chat messages.

    Args:
        sessions: Session Manager owning live sessions
        policies: Policy Store
        retriever: Knowledge Retriever
        gateway: Model Gateway
        response_filter: Response Filter
        broadcaster: Room fan-out (the connection manager)
        session_factory: Async session factory for the durable log
        knowledge_limit: Snippets added to a prompt
        clock: Source of "now"
    """

    def __init__(
        self,
        sessions: SessionManager,
        policies: PolicyStore,
        retriever: KnowledgeRetriever,
        gateway: ModelGateway,
        response_filter: ResponseFilter,
        broadcaster: Broadcaster,
        session_factory: async_sessionmaker[AsyncSession],
        knowledge_limit: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.sessions = sessions
        self.policies = policies
        self.retriever = retriever
        self.gateway = gateway
        self.response_filter = response_filter
        self.broadcaster = broadcaster
        self._session_factory = session_factory
        self.knowledge_limit = knowledge_limit
        self._clock = clock

    async def handle_message(
        self,
        session_id: str,
        content: str,
        attachments: list[Any] | None = None,
    ) -> OrchestrationResult:
        """
        Process one inbound message of a live session.

        Never raises: every failure is reported to the session room as a
        single error event and returned as an ERROR_REPORTED result.
        """
        handle = self.sessions.get(session_id)
        if handle is None:
            error = SessionNotFoundError(session_id)
            logger.warning(str(error))
            await self._report_error(session_id, SESSION_NOT_FOUND_MESSAGE, typing_started=False)
            return OrchestrationResult(
                stage=PipelineStage.ERROR_REPORTED,
                failed_stage=PipelineStage.RECEIVED,
                error=type(error).__name__,
            )

        async with handle.lock:
            return await self._process(handle, content, attachments or [])

    async def _process(
        self,
        handle: SessionHandle,
        content: str,
        attachments: list[Any],
    ) -> OrchestrationResult:
        session_id = handle.id
        stage = PipelineStage.RECEIVED
        typing_started = False
        received_at = self._clock()
        history = handle.history_entries()
        user_message = ChatMessage(
            id=new_id(),
            session_id=session_id,
            content=content,
            role=MessageRole.USER,
            attachments=attachments,
            timestamp=received_at,
        )
        logger.info(
            f"{__name__}:handle_message - START",
            extra={"session_id": session_id, "history": len(history)},
        )

        try:
            rule = await self.policies.resolve_for_widget(handle.widget_id)
            stage = PipelineStage.RULE_RESOLVED

            snippets = []
            if rule is not None and rule.knowledge_enabled:
                snippets = await self.retriever.retrieve(
                    content,
                    rule.knowledge_base_ids,
                    self.knowledge_limit,
                )
            prompt = build_prompt(content, rule, snippets)
            stage = PipelineStage.CONTEXT_GATHERED

            stage = PipelineStage.MODEL_INVOKED
            await self.broadcaster.broadcast(session_id, ServerEvent.typing(True))
            typing_started = True
            generation = await self.gateway.generate(
                prompt,
                history,
                rule.preferred_model if rule is not None else None,
            )

            reply_text, blocked_topic = self._filter(generation, rule)
            stage = PipelineStage.FILTERED

            assistant_message = ChatMessage(
                id=new_id(),
                session_id=session_id,
                content=reply_text,
                role=MessageRole.ASSISTANT,
                timestamp=max(self._clock(), received_at),
            )
            await self._persist_exchange(user_message, assistant_message)
            stage = PipelineStage.PERSISTED

            self.sessions.append_local(session_id, user_message)
            self.sessions.append_local(session_id, assistant_message)
            await self._log_interaction(
                handle,
                user_message,
                assistant_message,
                generation,
                rule,
                extra={"knowledge_results": len(snippets), "blocked_topic": blocked_topic},
            )

            await self.broadcaster.broadcast(
                session_id,
                ServerEvent(event=ServerEventType.MESSAGE, data=user_message.to_event_data()),
            )
            await self.broadcaster.broadcast(
                session_id,
                ServerEvent(event=ServerEventType.MESSAGE, data=assistant_message.to_event_data()),
            )
            await self.broadcaster.broadcast(session_id, ServerEvent.typing(False))
            stage = PipelineStage.BROADCAST
        except Exception as e:
            logger.exception(
                f"{__name__}:handle_message - failed at {stage.value}",
                extra={"session_id": session_id, "stage": stage.value},
            )
            message = (
                PERSISTENCE_ERROR_MESSAGE
                if isinstance(e, PersistenceError)
                else PROCESSING_ERROR_MESSAGE
            )
            await self._report_error(session_id, message, typing_started)
            return OrchestrationResult(
                stage=PipelineStage.ERROR_REPORTED,
                failed_stage=stage,
                user_message=user_message if stage == PipelineStage.PERSISTED else None,
                error=type(e).__name__,
            )

        logger.info(
            f"{__name__}:handle_message - END",
            extra={"session_id": session_id, "model_used": generation.model_used},
        )
        return OrchestrationResult(
            stage=PipelineStage.DONE,
            user_message=user_message,
            assistant_message=assistant_message,
            model_used=generation.model_used,
        )

    def _filter(
        self,
        generation: GenerationResult,
        rule: ContextRule | None,
    ) -> tuple[str, str | None]:
        if generation.model_used == FALLBACK_MODEL_ID or rule is None:
            return generation.content, None
        result = self.response_filter.apply(
            generation.content,
            rule.response_filters,
            rule.excluded_topics,
        )
        return result.content, result.blocked_topic

    async def _persist_exchange(
        self,
        user_message: ChatMessage,
        assistant_message: ChatMessage,
    ) -> None:
        """
        Write both messages and the activity update in one transaction.

        Raises:
            PersistenceError: If the transaction fails (nothing is written)
        """
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    await chat_message_crud.insert_exchange(db, user_message, assistant_message)
                    await chat_session_crud.touch(
                        db,
                        user_message.session_id,
                        assistant_message.timestamp,
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to persist message exchange: {e}",
                operation="insert_exchange",
                details={"session_id": user_message.session_id},
            ) from e

    async def _log_interaction(
        self,
        handle: SessionHandle,
        user_message: ChatMessage,
        assistant_message: ChatMessage,
        generation: GenerationResult,
        rule: ContextRule | None,
        extra: dict[str, Any],
    ) -> None:
        """Append the audit row; failures are logged and never surface."""
        metadata = {**generation.metadata, "attempts": generation.attempts}
        metadata.update({k: v for k, v in extra.items() if v is not None})
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    await ai_interaction_crud.log_interaction(
                        db,
                        query=user_message.content,
                        response=assistant_message.content,
                        model_used=generation.model_used,
                        session_id=handle.id,
                        user_id=handle.user_id,
                        context_rule_id=rule.id if rule is not None else None,
                        metadata=metadata,
                    )
        except Exception as e:
            error = InteractionLogError(
                f"Failed to write interaction log: {e}",
                details={"session_id": handle.id},
            )
            logger.warning(str(error))

    async def _report_error(self, session_id: str, message: str, typing_started: bool) -> None:
        try:
            if typing_started:
                await self.broadcaster.broadcast(session_id, ServerEvent.typing(False))
            await self.broadcaster.broadcast(session_id, ServerEvent.error(message))
        except Exception:
            logger.exception("Failed to deliver error event", extra={"session_id": session_id})
