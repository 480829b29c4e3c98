"""
Knowledge base CRUD operations.

Substring prefilter for the Knowledge Retriever, knowledge-base access checks
for the knowledge query API, and the append-only query log.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Knowledge Retriever persistence operations
"""

from typing import Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.models.knowledge_model import (
    KnowledgeBaseModel,
    KnowledgeDocumentModel,
    KnowledgeQueryLogModel,
)


class KnowledgeBaseCRUD(BaseCRUD[KnowledgeBaseModel]):
    """CRUD operations for KnowledgeBaseModel."""

    def __init__(self) -> None:
        """Initialize KnowledgeBaseCRUD with KnowledgeBaseModel."""
        super().__init__(KnowledgeBaseModel)

    async def get_accessible_ids(
        self,
        session: AsyncSession,
        user_id: str,
        knowledge_base_ids: list[str] | None = None,
    ) -> list[str]:
        """
        Resolve the knowledge bases a user may query.

        A knowledge base is accessible when the user owns it or it is public.

        Args:
            session: Async database session
            user_id: Requesting user
            knowledge_base_ids: Restrict to these ids; None means every accessible one

        Returns:
            Accessible knowledge base ids
        """
        stmt = select(KnowledgeBaseModel.id).where(
            or_(
                KnowledgeBaseModel.user_id == user_id,
                KnowledgeBaseModel.is_public.is_(True),
            )
        )
        if knowledge_base_ids is not None:
            stmt = stmt.where(KnowledgeBaseModel.id.in_(knowledge_base_ids))
        result = await session.execute(stmt)
        return list(result.scalars().all())


class KnowledgeDocumentCRUD(BaseCRUD[KnowledgeDocumentModel]):
    """CRUD operations for KnowledgeDocumentModel."""

    def __init__(self) -> None:
        """Initialize KnowledgeDocumentCRUD with KnowledgeDocumentModel."""
        super().__init__(KnowledgeDocumentModel)

    async def search_candidates(
        self,
        session: AsyncSession,
        query: str,
        knowledge_base_ids: list[str],
    ) -> Sequence[KnowledgeDocumentModel]:
        """
        Find documents whose title or content contains the query.

        Matching is case-insensitive and LIKE wildcards in the query match
        literally. Results are unordered; ranking happens in the caller.

        Args:
            session: Async database session
            query: Text to search for
            knowledge_base_ids: Knowledge bases to search

        Returns:
            Matching documents
        """
        stmt = select(KnowledgeDocumentModel).where(
            KnowledgeDocumentModel.knowledge_base_id.in_(knowledge_base_ids),
            or_(
                KnowledgeDocumentModel.content.icontains(query, autoescape=True),
                KnowledgeDocumentModel.title.icontains(query, autoescape=True),
            ),
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class KnowledgeQueryLogCRUD(BaseCRUD[KnowledgeQueryLogModel]):
    """CRUD operations for KnowledgeQueryLogModel."""

    def __init__(self) -> None:
        """Initialize KnowledgeQueryLogCRUD with KnowledgeQueryLogModel."""
        super().__init__(KnowledgeQueryLogModel)

    async def log_query(
        self,
        session: AsyncSession,
        query: str,
        results_count: int,
        knowledge_base_ids: list[str],
        user_id: str | None = None,
    ) -> KnowledgeQueryLogModel:
        """Append one query log row."""
        return await self.create(
            session,
            user_id=user_id,
            query=query,
            results_count=results_count,
            knowledge_base_ids=list(knowledge_base_ids),
        )


knowledge_base_crud = KnowledgeBaseCRUD()
knowledge_document_crud = KnowledgeDocumentCRUD()
knowledge_query_log_crud = KnowledgeQueryLogCRUD()
