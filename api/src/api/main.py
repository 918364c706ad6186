"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from alembic.config import Config as AlembicConfig
from alembic.script import ScriptDirectory
from daybook.config import get_settings
from daybook.database import Database
from daybook.errors import StoreError
from daybook.services.llm_client import build_llm_client
from daybook.services.openai_audio import OpenAIAudioClient
from daybook.services.version_defaults import ensure_default_versions
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.error_handlers import install_error_handlers
from api.routers import advanced_presets, audio, diary, health, prompts, realtime

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _migration_heads(repo_root: Path = REPO_ROOT) -> set[str] | None:
    """Heads of the bundled migration scripts, or None when they are not shipped."""
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        return None
    alembic_cfg = AlembicConfig(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(repo_root / "alembic"))
    return set(ScriptDirectory.from_config(alembic_cfg).get_heads())


async def _check_schema_revision(database: Database) -> None:
    if get_settings().skip_migration_check:
        return
    expected = _migration_heads()
    if expected is None:
        logger.warning("alembic.ini not found; skipping migration revision check")
        return
    if not expected:
        return

    try:
        applied = await database.applied_revisions()
    except StoreError as exc:
        raise RuntimeError("Cannot read alembic_version; run `alembic upgrade head` first") from exc
    if applied != expected:
        raise RuntimeError(
            f"Schema is at {sorted(applied)} but code expects {sorted(expected)}; "
            "run `alembic upgrade head`"
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    database = Database.from_settings(settings)
    llm_client = build_llm_client(settings)
    audio_client = OpenAIAudioClient.from_settings(settings)
    app.state.database = database
    app.state.llm_client = llm_client
    app.state.audio_client = audio_client
    try:
        await _check_schema_revision(database)
        await ensure_default_versions(database)
        yield
    finally:
        await audio_client.close()
        await llm_client.close()
        await database.dispose()


def create_app() -> FastAPI:
    app = FastAPI(title="Daybook API", version="0.1.0", lifespan=lifespan)
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(prompts.router, prefix="/api/prompts", tags=["prompts"])
    app.include_router(advanced_presets.router, prefix="/api/advanced-presets", tags=["presets"])
    app.include_router(diary.router, prefix="/api", tags=["diary"])
    app.include_router(audio.router, prefix="/api/audio", tags=["audio"])
    app.include_router(realtime.router, prefix="/api/realtime", tags=["realtime"])
    return app


app = create_app()
