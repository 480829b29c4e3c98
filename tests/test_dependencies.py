"""
Test suite for dependency injection container.

Tests ServiceCache wiring, request-scoped service factories and bearer
token verification.

System role: Verification of DI container and auth boundary
"""

from unittest.mock import AsyncMock

import jwt
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import JWT_SECRET, make_token
from widgetchat.api.deps import (
    ServiceCache,
    get_chat_history_service,
    get_knowledge_service,
)
from widgetchat.application.services import ChatHistoryService, KnowledgeService
from widgetchat.boundary.auth import TokenVerifier
from widgetchat.core.exceptions import AuthenticationError


@pytest.fixture
def mock_db_session() -> AsyncSession:
    """Provide mock async database session."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def service_cache(test_settings, session_factory, model_gateway) -> ServiceCache:
    return ServiceCache(settings=test_settings, session_factory=session_factory, model_gateway=model_gateway)


class TestServiceCache:
    """Test suite for ServiceCache."""

    async def test_components_should_be_cached(self, service_cache: ServiceCache) -> None:
        """Test every property returns the same instance until cleared."""
        # Act
        orchestrator = service_cache.orchestrator

        # Assert
        assert service_cache.orchestrator is orchestrator
        assert orchestrator.sessions is service_cache.session_manager
        assert orchestrator.broadcaster is service_cache.connection_manager
        assert service_cache.event_handler.orchestrator is orchestrator

    async def test_clear_should_rebuild_components(self, service_cache: ServiceCache) -> None:
        manager = service_cache.session_manager

        service_cache.clear()

        assert service_cache.session_manager is not manager

    async def test_pipeline_settings_should_flow_into_components(self, service_cache: ServiceCache) -> None:
        chat = service_cache.settings.chat

        assert service_cache.orchestrator.response_filter.refusal_message == chat.refusal_message
        assert service_cache.session_manager.history_size == chat.history_size


class TestServiceFactories:
    """Test suite for request-scoped service factories."""

    def test_get_chat_history_service_should_return_instance(self, mock_db_session: AsyncSession) -> None:
        service = get_chat_history_service(db=mock_db_session)

        assert isinstance(service, ChatHistoryService)
        assert service.db is mock_db_session

    def test_get_knowledge_service_should_return_instance(self, mock_db_session: AsyncSession) -> None:
        service = get_knowledge_service(db=mock_db_session)

        assert isinstance(service, KnowledgeService)
        assert service.db is mock_db_session


class TestTokenVerifier:
    """Test suite for TokenVerifier."""

    @pytest.fixture
    def verifier(self, session_factory) -> TokenVerifier:
        return TokenVerifier(secret=JWT_SECRET, algorithm="HS256", session_factory=session_factory)

    def test_decode_should_read_user_id_or_sub_claim(self, verifier: TokenVerifier) -> None:
        assert verifier.decode(make_token("u1")) == "u1"
        assert verifier.decode(jwt.encode({"sub": "u2"}, JWT_SECRET, algorithm="HS256")) == "u2"

    def test_decode_should_reject_bad_signature(self, verifier: TokenVerifier) -> None:
        with pytest.raises(AuthenticationError):
            verifier.decode(make_token("u1", secret="other"))

    def test_decode_should_reject_expired_token(self, verifier: TokenVerifier) -> None:
        token = jwt.encode({"userId": "u1", "exp": 1}, JWT_SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError) as exc_info:
            verifier.decode(token)

        assert exc_info.value.message == "Token expired"

    async def test_verify_should_resolve_active_user(self, verifier: TokenVerifier, seed) -> None:
        await seed.user(id="u1", role="admin")

        user = await verifier.verify(make_token("u1"))

        assert user.user_id == "u1"
        assert user.role == "admin"

    async def test_verify_unknown_user_should_raise(self, verifier: TokenVerifier) -> None:
        with pytest.raises(AuthenticationError):
            await verifier.verify(make_token("ghost"))

    async def test_optional_auth_should_fall_back_to_anonymous(self, verifier: TokenVerifier, seed) -> None:
        # Arrange
        await seed.user(id="disabled", is_active=False)

        # Act / Assert
        assert await verifier.authenticate_optional(None) is None
        assert await verifier.authenticate_optional("not-a-jwt") is None
        assert await verifier.authenticate_optional(make_token("ghost")) is None
        assert await verifier.authenticate_optional(make_token("disabled")) is None
