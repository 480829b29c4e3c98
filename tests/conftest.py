"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory async database, settings, fake model providers, a
recording broadcaster, fully wired pipeline components and a running app.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, fastapi, PyJWT
System role: Test infrastructure and fixture management
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool, StaticPool

from widgetchat.api.deps import ServiceCache
from widgetchat.application.services import (
    KnowledgeRetriever,
    Orchestrator,
    PolicyStore,
    SessionManager,
)
from widgetchat.boundary.db import models  # noqa: F401
from widgetchat.boundary.db.CRUD import (
    context_rule_crud,
    knowledge_base_crud,
    knowledge_document_crud,
    user_crud,
    widget_crud,
)
from widgetchat.boundary.db.base import Base
from widgetchat.configs.auth import AuthSettings
from widgetchat.configs.chat import ChatSettings
from widgetchat.configs.database import DatabaseSettings
from widgetchat.configs.llm import LLMSettings
from widgetchat.configs.settings import Settings
from widgetchat.core.model_gateway import ModelGateway, ModelProvider, ProviderReply
from widgetchat.core.response_filter import ResponseFilter
from widgetchat.main import create_app

REFUSAL = "I'm sorry, but I can't discuss that topic."
APOLOGY = "I'm sorry, I'm having trouble generating a response right now."
JWT_SECRET = "test-secret"


class FakeProvider(ModelProvider):
    """
    Scripted ModelProvider.

    Each call pops the next scripted item: a string is returned as the reply,
    an exception instance is raised. The last item repeats once exhausted.
    """

    def __init__(self, name: str, *script: Any, delay: float = 0.0) -> None:
        self.name = name
        self.script = list(script) or ["ok"]
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate(self, prompt: str, history: list[dict[str, str]]) -> ProviderReply:
        self.calls.append({"prompt": prompt, "history": list(history)})
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        return ProviderReply(content=item, input_tokens=3, output_tokens=5)


class RecordingBroadcaster:
    """Broadcaster that records every event instead of sending it."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def broadcast(self, session_id: str, event: Any, exclude: Any = None) -> int:
        self.events.append((session_id, event.to_dict()))
        return 1

    def names(self) -> list[str]:
        return [frame["event"] for _, frame in self.events]


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine shared by every session of the test
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(test_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a database session for direct CRUD calls.

    Yields:
        AsyncSession: Test database session
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment's provider keys and database."""
    return Settings(
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        llm=LLMSettings(default_model="primary", fallback_model="secondary", request_timeout_seconds=1.0),
        chat=ChatSettings(refusal_message=REFUSAL, apology_message=APOLOGY),
        auth=AuthSettings(jwt_secret=JWT_SECRET, jwt_algorithm="HS256"),
    )


@pytest.fixture
def primary_provider() -> FakeProvider:
    return FakeProvider("primary", "Hello from primary")


@pytest.fixture
def secondary_provider() -> FakeProvider:
    return FakeProvider("secondary", "Hello from secondary")


@pytest.fixture
def model_gateway(primary_provider: FakeProvider, secondary_provider: FakeProvider) -> ModelGateway:
    """Gateway over the two fake providers with a short timeout."""
    return ModelGateway(
        providers={"primary": primary_provider, "secondary": secondary_provider},
        default_model="primary",
        fallback_model="secondary",
        timeout_seconds=1.0,
        apology_message=APOLOGY,
    )


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def session_manager(session_factory) -> SessionManager:
    return SessionManager(session_factory=session_factory, history_size=20)


@pytest.fixture
def orchestrator(
    session_manager: SessionManager,
    session_factory,
    model_gateway: ModelGateway,
    broadcaster: RecordingBroadcaster,
) -> Orchestrator:
    """Orchestrator wired to the in-memory database and fake providers."""
    return Orchestrator(
        sessions=session_manager,
        policies=PolicyStore(session_factory),
        retriever=KnowledgeRetriever(session_factory, default_limit=3),
        gateway=model_gateway,
        response_filter=ResponseFilter(REFUSAL),
        broadcaster=broadcaster,
        session_factory=session_factory,
        knowledge_limit=3,
    )


@pytest.fixture
def fixed_clock():
    """Mutable clock: call to read, `.advance(seconds)` to move forward."""

    class _Clock:
        def __init__(self) -> None:
            self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

        def __call__(self) -> datetime:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now = self.now + timedelta(seconds=seconds)

    return _Clock()


class Seeder:
    """Insert committed rows through the CRUD layer."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _create(self, crud, **values):
        async with self._session_factory() as db:
            row = await crud.create(db, **values)
            await db.commit()
            return row

    async def user(self, **values):
        values.setdefault("email", f"{values.get('id', 'user')}@example.com")
        return await self._create(user_crud, **values)

    async def rule(self, **values):
        values.setdefault("name", "Support rule")
        return await self._create(context_rule_crud, **values)

    async def widget(self, **values):
        values.setdefault("name", "Support widget")
        return await self._create(widget_crud, **values)

    async def knowledge_base(self, **values):
        values.setdefault("name", "Help center")
        return await self._create(knowledge_base_crud, **values)

    async def document(self, **values):
        return await self._create(knowledge_document_crud, **values)


@pytest.fixture
def seed(session_factory) -> Seeder:
    """Row factory for the in-memory database."""
    return Seeder(session_factory)


def make_token(user_id: str, secret: str = JWT_SECRET) -> str:
    return jwt.encode({"userId": user_id}, secret, algorithm="HS256")


class ApiEnv:
    """Running application plus a synchronous handle on its database."""

    def __init__(self, client: TestClient, engine, cache: ServiceCache) -> None:
        self.client = client
        self.engine = engine
        self.cache = cache

    def add(self, *rows) -> None:
        with Session(self.engine) as session:
            session.add_all(rows)
            session.commit()

    def auth(self, user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def api_env(tmp_path, test_settings, model_gateway):
    """
    Application wired to a file-backed SQLite database and fake providers.

    The app's async engine uses NullPool so every connection is opened on the
    TestClient's own event loop; rows are seeded through a sync engine on the
    same file.

    Yields:
        ApiEnv: Client, seeding engine and service cache
    """
    db_path = tmp_path / "widgetchat.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)

    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    cache = ServiceCache(
        settings=test_settings,
        session_factory=async_sessionmaker(async_engine, autoflush=False, expire_on_commit=False),
        model_gateway=model_gateway,
    )

    with TestClient(create_app(cache)) as client:
        yield ApiEnv(client, sync_engine, cache)

    sync_engine.dispose()
