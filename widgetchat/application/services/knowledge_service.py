"""
Knowledge query service.

Runs the Knowledge Retriever ranking over the knowledge bases a user can
read and appends a query log row for every call.

Dependencies: sqlalchemy, widgetchat.boundary.db, widgetchat.application.services.knowledge_retriever
System role: Knowledge query API business logic
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.application.services.knowledge_retriever import search_documents
from widgetchat.boundary.db.CRUD.knowledge_crud import (
    knowledge_base_crud,
    knowledge_query_log_crud,
)
from widgetchat.core.exceptions import AccessDeniedError, ValidationError
from widgetchat.core.knowledge_ranking import RELEVANCE_SCORE
from widgetchat.models.knowledge import (
    KnowledgeQueryRequest,
    KnowledgeQueryResponse,
    KnowledgeQueryResult,
)

logger = logging.getLogger(__name__)


class KnowledgeService:
    """Knowledge query use case."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def query(self, user_id: str, request: KnowledgeQueryRequest) -> KnowledgeQueryResponse:
        """
        Search the requested (or all accessible) knowledge bases.

        Args:
            user_id: Authenticated user id
            request: Query, optional knowledge base ids and limit

        Returns:
            Ranked results

        Raises:
            ValidationError: If the query is blank
            AccessDeniedError: If none of the requested knowledge bases is readable
            RetrievalError: If the storage query fails
        """
        query = request.query.strip()
        if not query:
            raise ValidationError("Query is required", field="query")

        requested = request.knowledge_base_ids or None
        accessible = await knowledge_base_crud.get_accessible_ids(self.db, user_id, requested)
        if requested and not accessible:
            raise AccessDeniedError(
                "You don't have access to the specified knowledge bases",
                details={"knowledge_base_ids": requested},
            )

        documents = await search_documents(self.db, query, accessible, request.limit)
        results = [
            KnowledgeQueryResult(
                id=doc.id,
                knowledge_base_id=doc.knowledge_base_id,
                title=doc.title,
                content=doc.content,
                source_url=doc.source_url,
                relevance_score=RELEVANCE_SCORE,
            )
            for doc in documents
        ]

        await knowledge_query_log_crud.log_query(
            self.db,
            query=query,
            results_count=len(results),
            knowledge_base_ids=accessible,
            user_id=user_id,
        )
        await self.db.commit()

        logger.info(
            "Knowledge query served",
            extra={"user_id": user_id, "results": len(results), "knowledge_bases": len(accessible)},
        )
        return KnowledgeQueryResponse(query=query, results=results, total=len(results))
