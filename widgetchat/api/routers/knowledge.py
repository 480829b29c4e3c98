"""
Knowledge query API endpoints.

Routes: POST /knowledge-base/query

Dependencies: widgetchat.application.services.knowledge_service
System role: Knowledge query HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from widgetchat.api.deps import get_current_user, get_knowledge_service
from widgetchat.application.services import KnowledgeService
from widgetchat.boundary.auth import AuthenticatedUser
from widgetchat.core.exceptions import AccessDeniedError, RetrievalError, ValidationError
from widgetchat.models.knowledge import KnowledgeQueryRequest, KnowledgeQueryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge-base", tags=["knowledge-base"])


@router.post("/query", response_model=KnowledgeQueryResponse)
async def query_knowledge_base(
    request: KnowledgeQueryRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    knowledge_service: KnowledgeService = Depends(get_knowledge_service),
) -> KnowledgeQueryResponse:
    """
    Search knowledge documents with the retriever ranking.

    Raises:
        HTTPException(400): Blank query
        HTTPException(401): Not authenticated
        HTTPException(403): No access to the requested knowledge bases
        HTTPException(500): Query failed
    """
    try:
        return await knowledge_service.query(user.user_id, request)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except AccessDeniedError as e:
        raise HTTPException(status_code=403, detail=e.message)
    except RetrievalError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail="Knowledge query failed")
