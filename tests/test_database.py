"""Tests for the store gateway and its error classification."""

import pytest
from daybook.config import Settings
from daybook.database import Database, classify_store_error, is_unique_violation
from daybook.errors import (
    DuplicateVersionError,
    ResourceExhaustedError,
    StoreError,
    StoreUnavailableError,
    VersionNotFoundError,
)
from daybook.models import PromptVersion
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity(message: str, sqlstate: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, _DriverError(message, sqlstate))


class TestClassifyStoreError:
    def test_unique_violation_by_sqlstate(self):
        exc = _integrity("duplicate key value violates constraint", sqlstate="23505")
        assert is_unique_violation(exc)
        assert isinstance(classify_store_error(exc), DuplicateVersionError)

    def test_unique_violation_by_message(self):
        exc = _integrity("UNIQUE constraint failed: prompt_versions.endpoint, prompt_versions.name")
        error = classify_store_error(exc)
        assert isinstance(error, DuplicateVersionError)
        assert error.status_code == 409
        assert "UNIQUE constraint failed" in error.detail

    def test_other_integrity_error_is_generic(self):
        exc = _integrity("null value in column violates not-null constraint", sqlstate="23502")
        assert not is_unique_violation(exc)
        error = classify_store_error(exc)
        assert type(error) is StoreError
        assert error.status_code == 500

    def test_pool_timeout_is_resource_exhaustion(self):
        error = classify_store_error(PoolTimeoutError("QueuePool limit of size 20 overflow 0 reached"))
        assert isinstance(error, ResourceExhaustedError)

    def test_operational_error_is_unavailable(self):
        exc = OperationalError("SELECT 1", {}, _DriverError("connection refused"))
        assert isinstance(classify_store_error(exc), StoreUnavailableError)

    def test_os_error_is_unavailable(self):
        assert isinstance(classify_store_error(ConnectionRefusedError()), StoreUnavailableError)

    def test_unknown_error_is_generic(self):
        exc = ProgrammingError("SELECT nope", {}, _DriverError("syntax error"))
        assert type(classify_store_error(exc)) is StoreError

    def test_typed_errors_pass_through(self):
        original = VersionNotFoundError()
        assert classify_store_error(original) is original


class TestDatabase:
    async def test_ping(self, database):
        await database.ping()

    async def test_execute_returns_buffered_result(self, seeded_database):
        result = await seeded_database.execute(
            select(PromptVersion).where(PromptVersion.endpoint == "tts")
        )
        rows = result.scalars().all()
        assert [row.version for row in rows] == ["v0"]

    async def test_transaction_commits(self, database):
        async with database.transaction() as session:
            session.add(PromptVersion(endpoint="tts", version_number=0, name="a", prompt="x"))
        result = await database.execute(select(PromptVersion.name))
        assert result.scalars().all() == ["a"]

    async def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            async with database.transaction() as session:
                session.add(PromptVersion(endpoint="tts", version_number=0, name="a", prompt="x"))
                await session.flush()
                raise RuntimeError("boom")
        result = await database.execute(select(PromptVersion.name))
        assert result.scalars().all() == []

    async def test_store_errors_are_classified(self, database):
        with pytest.raises(StoreError) as exc_info:
            await database.execute(text("SELECT * FROM missing_table"))
        assert exc_info.value.detail

    async def test_unique_violation_inside_transaction(self, database):
        async with database.transaction() as session:
            session.add(PromptVersion(endpoint="tts", version_number=0, name="a", prompt="x"))
        with pytest.raises(DuplicateVersionError):
            async with database.transaction() as session:
                session.add(PromptVersion(endpoint="tts", version_number=1, name="a", prompt="y"))

    async def test_two_current_rows_rejected_by_store(self, database):
        async with database.transaction() as session:
            session.add(
                PromptVersion(endpoint="tts", version_number=0, name="a", prompt="x", is_current=True)
            )
        with pytest.raises(DuplicateVersionError):
            async with database.transaction() as session:
                session.add(
                    PromptVersion(endpoint="tts", version_number=1, name="b", prompt="y", is_current=True)
                )

    def test_from_settings_builds_bounded_pool(self):
        settings = Settings(DATABASE_URL="postgresql+asyncpg://u:p@localhost:5432/db", DB_POOL_SIZE=5)
        database = Database.from_settings(settings)
        assert database.engine.pool.size() == 5
