"""FastAPI dependency injection."""

from __future__ import annotations

from daybook.database import Database
from daybook.services.llm_client import LLMClient
from daybook.services.openai_audio import OpenAIAudioClient
from daybook.services.version_lifecycle import (
    PRESETS,
    PROMPTS,
    VersionLifecycle,
    validate_endpoint,
)
from fastapi import Depends, Request


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm_client


def get_audio_client(request: Request) -> OpenAIAudioClient:
    return request.app.state.audio_client


def get_prompt_lifecycle(database: Database = Depends(get_database)) -> VersionLifecycle:
    return VersionLifecycle(database, PROMPTS)


def get_preset_lifecycle(database: Database = Depends(get_database)) -> VersionLifecycle:
    return VersionLifecycle(database, PRESETS)


def valid_endpoint(endpoint: str) -> str:
    """Path parameter guard: rejects endpoints outside the recognized set with 400."""
    return validate_endpoint(endpoint)
