"""Realtime voice session token issuance and session-end logging."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from daybook.config import get_settings
from daybook.errors import NoPromptFoundError
from daybook.services.openai_audio import OpenAIAudioClient
from daybook.services.version_defaults import REALTIME_INSTRUCTIONS
from daybook.services.version_lifecycle import VersionLifecycle
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_audio_client, get_preset_lifecycle, get_prompt_lifecycle
from api.services.diary_analysis import resolve_prompt
from api.services.realtime_session import DEFAULT_VOICE, build_realtime_session

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str = Field(min_length=1)
    voice: str | None = None
    instructions: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_output_tokens: int | None = Field(default=None, ge=1, alias="maxOutputTokens")


class RealtimeTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    session_config: SessionConfig = Field(alias="sessionConfig")


class RealtimeEndRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    duration: float = 0
    message_count: int = Field(default=0, alias="messageCount")
    ended_by: str = Field(default="unknown", alias="endedBy")


@router.post("/token")
async def create_token(
    req: RealtimeTokenRequest,
    audio: OpenAIAudioClient = Depends(get_audio_client),
    prompts: VersionLifecycle = Depends(get_prompt_lifecycle),
    presets: VersionLifecycle = Depends(get_preset_lifecycle),
):
    config = req.session_config
    instructions = config.instructions or await resolve_prompt(prompts, "realtime", REALTIME_INSTRUCTIONS)
    try:
        preset = await presets.get_current("realtime")
    except NoPromptFoundError:
        preset = None

    session = build_realtime_session(
        model=config.model,
        instructions=instructions,
        voice=config.voice,
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
        preset=preset,
    )
    logger.info(
        "Creating realtime token user=%s model=%s preset=%s",
        req.user_id or "anonymous",
        config.model,
        preset.version if preset is not None else None,
    )
    data = await audio.create_realtime_client_secret(
        session, expires_in_seconds=get_settings().realtime_token_ttl_seconds
    )
    issued_session = data.get("session") or {}
    return {
        "success": True,
        "token": data.get("value"),
        "sessionId": issued_session.get("id") or "unknown",
        "expiresAt": data.get("expires_at"),
        "config": {
            "model": issued_session.get("model") or config.model,
            "voice": config.voice or DEFAULT_VOICE,
            "presetId": str(preset.id) if preset is not None else None,
        },
    }


@router.post("/end")
async def end_session(req: RealtimeEndRequest):
    logger.info(
        "Realtime session ended id=%s duration=%.0fs messages=%d ended_by=%s at=%s",
        req.session_id,
        req.duration,
        req.message_count,
        req.ended_by,
        datetime.now(UTC).isoformat(),
    )
    return {
        "success": True,
        "message": "Session ended and logged successfully",
        "sessionData": {
            "sessionId": req.session_id,
            "duration": req.duration,
            "messageCount": req.message_count,
            "endedBy": req.ended_by,
        },
    }
