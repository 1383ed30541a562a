"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from aila.core.database import Base, build_session_factory
from aila.models.chat import Chat  # noqa: F401
from aila.services.chat_store import ChatStore
from aila.services.completion_service import CompletionClient

# --- Deterministic clock ---


class FakeClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(
        self,
        start: datetime = datetime(2026, 1, 1, 9, 0, 0, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step
        self.calls: list[datetime] = []

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        self.calls.append(value)
        return value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# --- Test DB (SQLite file per test) ---


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'chats.sqlite'}"


@pytest.fixture
async def chat_store(
    database_url: str, clock: FakeClock
) -> AsyncGenerator[ChatStore, None]:
    """An opened ChatStore on a fresh database file."""
    store = ChatStore(database_url, clock=clock)
    await store.init()
    yield store
    await store.close()


@pytest.fixture
async def db_session(database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with build_session_factory(engine)() as session:
        yield session
    await engine.dispose()


async def write_raw_history(database_url: str, chat_id: str, blob: str) -> None:
    """Overwrite a stored history blob bypassing the store."""
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.execute(
            text("UPDATE chats SET history = :blob WHERE id = :id"),
            {"blob": blob, "id": chat_id},
        )
    await engine.dispose()


# --- Mock LLM / completion ---


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM for testing."""
    mock = MagicMock(spec=BaseChatModel)
    mock.ainvoke = AsyncMock(return_value=AIMessage(content="Test response"))
    return mock


@pytest.fixture
def fake_completion() -> MagicMock:
    """Completion client that always answers "Test response"."""
    mock = MagicMock(spec=CompletionClient)
    mock.complete = AsyncMock(return_value="Test response")
    return mock


# --- App client ---


@pytest.fixture
async def api_client(
    chat_store: ChatStore, fake_completion: MagicMock
) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with a test store and fake completion."""
    from aila.dependencies import get_completion_client
    from aila.main import app

    app.state.chat_store = chat_store
    app.dependency_overrides[get_completion_client] = lambda: fake_completion
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    app.state.chat_store = None
