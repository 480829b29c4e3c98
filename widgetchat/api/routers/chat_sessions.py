"""
Chat history API endpoints.

Routes:
- GET /chat/sessions - List the authenticated user's sessions
- GET /chat/sessions/{session_id} - Get a session with its ordered messages
- POST /chat/sessions - Open a session, storing the widget welcome message

Dependencies: widgetchat.application.services (chat history, session manager)
System role: Chat history HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from widgetchat.api.deps import (
    get_chat_history_service,
    get_current_user,
    get_optional_user,
    get_session_manager,
)
from widgetchat.application.services import ChatHistoryService, SessionManager
from widgetchat.boundary.auth import AuthenticatedUser
from widgetchat.core.exceptions import PersistenceError, SessionNotFoundError
from widgetchat.models.chat import (
    ChatMessageResponse,
    ChatSessionDetailResponse,
    ChatSessionResponse,
    CreateChatSessionRequest,
    CreateChatSessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/sessions", response_model=list[ChatSessionResponse])
async def list_sessions(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    history_service: ChatHistoryService = Depends(get_chat_history_service),
) -> list[ChatSessionResponse]:
    """
    List the user's chat sessions, most recent activity first.

    Raises:
        HTTPException(401): Not authenticated
        HTTPException(500): Retrieval failed
    """
    try:
        return await history_service.list_sessions(user.user_id, limit=limit, offset=offset)
    except Exception as e:
        logger.exception("Failed to list chat sessions", extra={"user_id": user.user_id})
        raise HTTPException(status_code=500, detail=f"Failed to retrieve sessions: {str(e)}")


@router.get("/sessions/{session_id}", response_model=ChatSessionDetailResponse)
async def get_session(
    session_id: str,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    history_service: ChatHistoryService = Depends(get_chat_history_service),
) -> ChatSessionDetailResponse:
    """
    Get a stored session and its messages in log order.

    Raises:
        HTTPException(404): Session not found or not visible to the caller
        HTTPException(500): Retrieval failed
    """
    try:
        return await history_service.get_session(
            session_id,
            user_id=user.user_id if user is not None else None,
        )
    except SessionNotFoundError:
        raise HTTPException(
            status_code=404,
            detail="Chat session not found or you don't have access",
        )
    except Exception as e:
        logger.exception("Failed to load chat session", extra={"session_id": session_id})
        raise HTTPException(status_code=500, detail=f"Failed to retrieve session: {str(e)}")


@router.post("/sessions", response_model=CreateChatSessionResponse, status_code=201)
async def create_session(
    request: CreateChatSessionRequest | None = None,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> CreateChatSessionResponse:
    """
    Open a new chat session, optionally bound to a widget.

    The session gets a generated id and becomes live in the Session Manager,
    so a socket connecting with that `sessionId` resumes it. When the widget
    has a welcome message it is stored and returned here, and the socket
    `init_chat` does not repeat it. Anonymous callers get an unowned session.

    Raises:
        HTTPException(500): Session could not be stored
    """
    widget_id = request.widget_id if request is not None else None
    try:
        outcome = await sessions.resume(
            widget_id=widget_id,
            user_id=user.user_id if user is not None else None,
        )
    except PersistenceError as e:
        logger.exception("Failed to create chat session", extra={"widget_id": widget_id})
        raise HTTPException(status_code=500, detail=f"Failed to create session: {e.message}")

    welcome = outcome.welcome_message
    return CreateChatSessionResponse(
        session_id=outcome.session.id,
        widget_id=outcome.session.widget_id,
        created_at=outcome.session.created_at,
        welcome_message=(
            ChatMessageResponse(
                id=welcome.id,
                role=welcome.role.value,
                content=welcome.content,
                attachments=list(welcome.attachments),
                created_at=welcome.timestamp,
            )
            if welcome is not None
            else None
        ),
    )
