"""
Dependency injection container.

Process-wide pipeline components live in a ServiceCache built lazily from
settings; request-scoped services are built per request from the database
session. Tests replace the cache through `app.dependency_overrides`.

Dependencies: fastapi, widgetchat.configs, widgetchat.application, widgetchat.boundary
System role: DI container for service injection
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.api.websocket.connection_manager import ConnectionManager
from widgetchat.api.websocket.event_handler import ChatEventHandler
from widgetchat.application.services import (
    ChatHistoryService,
    KnowledgeRetriever,
    KnowledgeService,
    Orchestrator,
    PolicyStore,
    SessionManager,
)
from widgetchat.boundary.auth import AuthenticatedUser, TokenVerifier
from widgetchat.boundary.db import get_async_session_factory
from widgetchat.configs import Settings, get_settings
from widgetchat.core.exceptions import AuthenticationError
from widgetchat.core.model_gateway import ModelGateway
from widgetchat.core.response_filter import ResponseFilter

bearer_scheme = HTTPBearer(auto_error=False)


class ServiceCache:
    """Container for cached pipeline component instances."""

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        model_gateway: ModelGateway | None = None,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory
        self._model_gateway = model_gateway
        self._session_manager = None
        self._connection_manager = None
        self._orchestrator = None
        self._token_verifier = None
        self._event_handler = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_async_session_factory()
        return self._session_factory

    @property
    def session_manager(self) -> SessionManager:
        """Get cached session manager."""
        if self._session_manager is None:
            self._session_manager = SessionManager.from_settings(
                self.settings.chat,
                self.session_factory,
            )
        return self._session_manager

    @property
    def connection_manager(self) -> ConnectionManager:
        """Get cached connection manager."""
        if self._connection_manager is None:
            self._connection_manager = ConnectionManager()
        return self._connection_manager

    @property
    def model_gateway(self) -> ModelGateway:
        """Get cached model gateway."""
        if self._model_gateway is None:
            self._model_gateway = ModelGateway.from_settings(self.settings.llm, self.settings.chat)
        return self._model_gateway

    @property
    def orchestrator(self) -> Orchestrator:
        """Get cached orchestrator."""
        if self._orchestrator is None:
            chat = self.settings.chat
            self._orchestrator = Orchestrator(
                sessions=self.session_manager,
                policies=PolicyStore(self.session_factory),
                retriever=KnowledgeRetriever(self.session_factory, chat.knowledge_limit),
                gateway=self.model_gateway,
                response_filter=ResponseFilter(chat.refusal_message),
                broadcaster=self.connection_manager,
                session_factory=self.session_factory,
                knowledge_limit=chat.knowledge_limit,
            )
        return self._orchestrator

    @property
    def token_verifier(self) -> TokenVerifier:
        """Get cached token verifier."""
        if self._token_verifier is None:
            auth = self.settings.auth
            self._token_verifier = TokenVerifier(
                secret=auth.jwt_secret,
                algorithm=auth.jwt_algorithm,
                session_factory=self.session_factory,
            )
        return self._token_verifier

    @property
    def event_handler(self) -> ChatEventHandler:
        """Get cached WebSocket event handler."""
        if self._event_handler is None:
            self._event_handler = ChatEventHandler(
                sessions=self.session_manager,
                orchestrator=self.orchestrator,
                connections=self.connection_manager,
            )
        return self._event_handler

    def clear(self) -> None:
        """Clear all cached instances."""
        self._session_manager = None
        self._connection_manager = None
        self._orchestrator = None
        self._token_verifier = None
        self._event_handler = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


async def get_db(
    cache: ServiceCache = Depends(get_service_cache),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session, closed after the route completes.

    Yields:
        AsyncSession: Session from the cache's factory
    """
    async with cache.session_factory() as session:
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    cache: ServiceCache = Depends(get_service_cache),
) -> AuthenticatedUser:
    """
    Require a valid bearer token of an active user.

    Raises:
        HTTPException(401): Missing or invalid token, unknown user
        HTTPException(403): Disabled account
    """
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    try:
        user = await cache.token_verifier.verify(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your account has been disabled")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    cache: ServiceCache = Depends(get_service_cache),
) -> AuthenticatedUser | None:
    """Bearer identity when present and valid, else anonymous."""
    token = credentials.credentials if credentials is not None else None
    return await cache.token_verifier.authenticate_optional(token)


def get_chat_history_service(db: AsyncSession = Depends(get_db)) -> ChatHistoryService:
    """
    Get chat history service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        ChatHistoryService: Chat history service instance
    """
    return ChatHistoryService(db=db)


def get_knowledge_service(db: AsyncSession = Depends(get_db)) -> KnowledgeService:
    """
    Get knowledge service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        KnowledgeService: Knowledge query service instance
    """
    return KnowledgeService(db=db)


def get_session_manager(cache: ServiceCache = Depends(get_service_cache)) -> SessionManager:
    """Process-wide Session Manager shared with the WebSocket connection layer."""
    return cache.session_manager
