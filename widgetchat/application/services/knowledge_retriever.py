"""
Knowledge Retriever.

Substring match over knowledge documents with title priority and
shortest-content tie-break. No match, or a storage failure, yields an empty
list so the pipeline continues without extra context.

Dependencies: sqlalchemy, widgetchat.boundary.db, widgetchat.core.knowledge_ranking
System role: ContextGathered stage of the orchestration pipeline
"""

import logging
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.boundary.db.CRUD.knowledge_crud import knowledge_document_crud
from widgetchat.boundary.db.models.knowledge_model import KnowledgeDocumentModel
from widgetchat.core.exceptions import RetrievalError
from widgetchat.core.knowledge_ranking import rank_documents, to_snippet
from widgetchat.models.knowledge import KnowledgeSnippet

logger = logging.getLogger(__name__)


async def search_documents(
    db: AsyncSession,
    query: str,
    knowledge_base_ids: list[str],
    limit: int,
) -> Sequence[KnowledgeDocumentModel]:
    """
    Ranked documents for a query.

    Raises:
        RetrievalError: If the storage query fails
    """
    if not query or not knowledge_base_ids:
        return []
    try:
        candidates = await knowledge_document_crud.search_candidates(db, query, knowledge_base_ids)
    except SQLAlchemyError as e:
        raise RetrievalError(
            f"Knowledge search failed: {e}",
            knowledge_base_ids=knowledge_base_ids,
        ) from e
    return rank_documents(query, candidates, limit)


class KnowledgeRetriever:
    """
    Retrieve supporting snippets for a prompt.

    Args:
        session_factory: Async session factory
        default_limit: Snippets returned when the caller gives no limit
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_limit: int = 3,
    ) -> None:
        self._session_factory = session_factory
        self.default_limit = default_limit

    async def retrieve(
        self,
        query: str,
        knowledge_base_ids: list[str],
        limit: int | None = None,
    ) -> list[KnowledgeSnippet]:
        """
        Ranked snippets for `query` across the given knowledge bases.

        Returns:
            Snippets ordered by title match, content length and id; empty
            when nothing matches or the lookup fails
        """
        limit = self.default_limit if limit is None else limit
        if not query or not knowledge_base_ids:
            return []
        try:
            async with self._session_factory() as db:
                documents = await search_documents(db, query, knowledge_base_ids, limit)
        except RetrievalError as e:
            logger.warning(f"Continuing without knowledge context: {e}")
            return []
        except SQLAlchemyError as e:
            logger.warning(
                "Continuing without knowledge context",
                extra={"error": str(e), "knowledge_base_ids": knowledge_base_ids},
            )
            return []

        snippets = [to_snippet(query, doc) for doc in documents]
        logger.debug(
            "Knowledge retrieved",
            extra={"results": len(snippets), "knowledge_base_ids": knowledge_base_ids},
        )
        return snippets
