"""OpenAI audio endpoints: transcription, speech synthesis and realtime client secrets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from daybook.config import Settings
from daybook.errors import ConfigurationError, UpstreamError
from daybook.services.llm_client import raise_for_upstream_status

logger = logging.getLogger(__name__)

SPEECH_CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/pcm",
}

TRANSCRIBE_VOCABULARY_HINT = "일기, 하루, 오늘, 어제, 내일, 기분, 감정, 생각, 경험, 일상"


@dataclass
class Transcription:
    text: str
    language: str | None
    duration: float | None


class OpenAIAudioClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        transcribe_model: str = "gpt-4o-transcribe",
        transcribe_language: str = "ko",
        tts_model: str = "gpt-4o-mini-tts",
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.transcribe_model = transcribe_model
        self.transcribe_language = transcribe_language
        self.tts_model = tts_model
        self._client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIAudioClient:
        return cls(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            transcribe_model=settings.transcribe_model,
            transcribe_language=settings.transcribe_language,
            tts_model=settings.tts_model,
            timeout=settings.upstream_timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            logger.error("OPENAI_API_KEY is not set")
            raise ConfigurationError("Server configuration error")
        return {"Authorization": f"Bearer {self._api_key}"}

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        headers = self._headers()
        try:
            response = await self._client.post(f"{self._base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError("OpenAI API unreachable", detail=str(exc)) from exc
        raise_for_upstream_status(response, "OpenAI")
        return response

    async def transcribe(
        self,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> Transcription:
        files = {"file": (filename, data, content_type or "application/octet-stream")}
        form = {
            "model": self.transcribe_model,
            "language": self.transcribe_language,
            "response_format": "json",
            "prompt": TRANSCRIBE_VOCABULARY_HINT,
        }
        logger.info("Transcription request model=%s bytes=%d", self.transcribe_model, len(data))
        response = await self._post("/audio/transcriptions", data=form, files=files)
        body = response.json()
        return Transcription(
            text=body.get("text", ""),
            language=body.get("language") or self.transcribe_language,
            duration=body.get("duration"),
        )

    async def speech(
        self,
        text: str,
        *,
        voice: str = "alloy",
        instructions: str | None = None,
        response_format: str = "mp3",
    ) -> bytes:
        payload: dict[str, Any] = {
            "model": self.tts_model,
            "input": text,
            "voice": voice,
            "response_format": response_format,
        }
        if instructions:
            payload["instructions"] = instructions
        logger.info("Speech request model=%s voice=%s chars=%d", self.tts_model, voice, len(text))
        response = await self._post("/audio/speech", json=payload)
        return response.content

    async def create_realtime_client_secret(
        self,
        session: dict[str, Any],
        *,
        expires_in_seconds: int = 1800,
    ) -> dict[str, Any]:
        payload = {
            "expires_after": {"anchor": "created_at", "seconds": expires_in_seconds},
            "session": session,
        }
        response = await self._post("/realtime/client_secrets", json=payload)
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()
