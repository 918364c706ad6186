"""Shared-package test configuration: an in-memory store per test."""

import pytest
from daybook.database import Database
from daybook.models import Base
from daybook.services.version_defaults import ensure_default_versions
from daybook.services.version_lifecycle import PRESETS, PROMPTS, VersionLifecycle
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool


@pytest.fixture
async def database():
    """Empty schema on a single shared in-memory SQLite connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    db = Database(engine)
    yield db
    await db.dispose()


@pytest.fixture
async def seeded_database(database):
    await ensure_default_versions(database)
    return database


@pytest.fixture
def prompts(seeded_database):
    return VersionLifecycle(seeded_database, PROMPTS)


@pytest.fixture
def presets(seeded_database):
    return VersionLifecycle(seeded_database, PRESETS)


@pytest.fixture
async def file_database(tmp_path):
    """Provisioned file-backed store with a real pool, so callers get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'daybook.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    db = Database(engine)
    await ensure_default_versions(db)
    yield db
    await db.dispose()
