"""API test configuration."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from api.dependencies import get_audio_client, get_database, get_llm_client
from api.main import create_app
from daybook.database import Database
from daybook.models import Base
from daybook.services.llm_client import LLMClient, LLMCompletion
from daybook.services.openai_audio import OpenAIAudioClient
from daybook.services.version_defaults import ensure_default_versions
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool


@pytest.fixture
async def database():
    """Provisioned in-memory store, shared by every request of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    db = Database(engine)
    await ensure_default_versions(db)
    yield db
    await db.dispose()


@pytest.fixture
def mock_llm():
    llm = MagicMock(spec=LLMClient)
    llm.generate = AsyncMock(return_value=LLMCompletion(content="{}", model="gpt-4o", total_tokens=0))
    return llm


@pytest.fixture
def mock_audio():
    audio = MagicMock(spec=OpenAIAudioClient)
    audio.transcribe = AsyncMock()
    audio.speech = AsyncMock(return_value=b"")
    audio.create_realtime_client_secret = AsyncMock(return_value={})
    return audio


@pytest.fixture
def app(database, mock_llm, mock_audio):
    a = create_app()
    a.dependency_overrides[get_database] = lambda: database
    a.dependency_overrides[get_llm_client] = lambda: mock_llm
    a.dependency_overrides[get_audio_client] = lambda: mock_audio
    return a


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
