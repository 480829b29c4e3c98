"""
AI interaction log CRUD operations.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Append-only interaction audit trail
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.models.ai_interaction_model import AIInteractionLogModel


class AIInteractionCRUD(BaseCRUD[AIInteractionLogModel]):
    """CRUD operations for AIInteractionLogModel."""

    def __init__(self) -> None:
        """Initialize AIInteractionCRUD with AIInteractionLogModel."""
        super().__init__(AIInteractionLogModel)

    async def log_interaction(
        self,
        session: AsyncSession,
        *,
        query: str,
        response: str,
        model_used: str,
        session_id: str | None = None,
        user_id: str | None = None,
        context_rule_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AIInteractionLogModel:
        """Append one interaction row."""
        return await self.create(
            session,
            user_id=user_id,
            session_id=session_id,
            query=query,
            response=response,
            model_used=model_used,
            context_rule_id=context_rule_id,
            interaction_metadata=metadata or {},
        )


ai_interaction_crud = AIInteractionCRUD()
