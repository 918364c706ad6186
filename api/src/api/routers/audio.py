"""Speech-to-text and text-to-speech proxies."""

from __future__ import annotations

import logging
from typing import Literal

from daybook.config import get_settings
from daybook.errors import PayloadTooLargeError, ValidationError
from daybook.services.openai_audio import SPEECH_CONTENT_TYPES, OpenAIAudioClient
from daybook.services.version_defaults import TTS_INSTRUCTIONS
from daybook.services.version_lifecycle import VersionLifecycle
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, field_validator

from api.dependencies import get_audio_client, get_prompt_lifecycle
from api.services.diary_analysis import resolve_prompt

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_CHUNK_BYTES = 1024 * 1024


class SpeechRequest(BaseModel):
    text: str
    voice: str = "alloy"
    instructions: str | None = None
    response_format: Literal["mp3", "opus", "aac", "flac", "wav", "pcm"] = "mp3"

    @field_validator("text")
    @classmethod
    def _non_empty_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("텍스트가 비어있습니다.")
        return value


async def _read_capped(upload: UploadFile, limit: int) -> bytes:
    """Read the upload, failing as soon as it grows past ``limit`` bytes."""
    chunks: list[bytes] = []
    size = 0
    while chunk := await upload.read(UPLOAD_CHUNK_BYTES):
        size += len(chunk)
        if size > limit:
            raise PayloadTooLargeError(f"파일 크기가 너무 큽니다 (최대 {limit // (1024 * 1024)}MB)")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/transcribe")
async def transcribe_audio(
    file: UploadFile | None = File(default=None),
    audio: OpenAIAudioClient = Depends(get_audio_client),
):
    if file is None:
        raise ValidationError("file 필드가 필요합니다 (오디오 파일)")
    data = await _read_capped(file, get_settings().max_upload_bytes)
    if not data:
        raise ValidationError("빈 파일입니다. 유효한 오디오 파일을 업로드해주세요.")

    logger.info("Transcribing %s (%d bytes)", file.filename, len(data))
    result = await audio.transcribe(file.filename or "audio.webm", data, file.content_type)
    return {
        "success": True,
        "text": result.text,
        "language": result.language,
        "duration": result.duration,
    }


@router.post("/speech")
async def synthesize_speech(
    req: SpeechRequest,
    audio: OpenAIAudioClient = Depends(get_audio_client),
    prompts: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    instructions = req.instructions or await resolve_prompt(prompts, "tts", TTS_INSTRUCTIONS)
    content = await audio.speech(
        req.text,
        voice=req.voice,
        instructions=instructions,
        response_format=req.response_format,
    )
    return Response(content=content, media_type=SPEECH_CONTENT_TYPES[req.response_format])
