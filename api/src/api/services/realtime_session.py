"""Realtime session payload assembly from the request plus the current preset."""

from __future__ import annotations

from typing import Any

from daybook.models import AdvancedPreset

DEFAULT_VOICE = "alloy"


def _turn_detection(preset: AdvancedPreset) -> dict[str, Any] | None:
    values = {
        "threshold": preset.threshold,
        "prefix_padding_ms": preset.prefix_padding_ms,
        "silence_duration_ms": preset.silence_duration_ms,
        "idle_timeout_ms": preset.idle_timeout_ms,
    }
    values = {key: value for key, value in values.items() if value is not None}
    if not values:
        return None
    return {"type": "server_vad", **values}


def build_realtime_session(
    *,
    model: str,
    instructions: str,
    voice: str | None = None,
    temperature: float | None = None,
    max_output_tokens: int | None = None,
    preset: AdvancedPreset | None = None,
) -> dict[str, Any]:
    """Session body for ``/realtime/client_secrets``.

    Explicit request values win over the preset; preset fields left ``None``
    are omitted so the provider applies its own defaults.
    """
    output: dict[str, Any] = {"voice": voice or DEFAULT_VOICE}
    session: dict[str, Any] = {
        "type": "realtime",
        "model": model,
        "instructions": instructions,
        "audio": {"output": output},
    }

    if preset is not None:
        temperature = temperature if temperature is not None else preset.temperature
        max_output_tokens = max_output_tokens or preset.max_output_tokens
        if preset.speed is not None:
            output["speed"] = preset.speed
        audio_input: dict[str, Any] = {}
        turn_detection = _turn_detection(preset)
        if turn_detection:
            audio_input["turn_detection"] = turn_detection
        if preset.noise_reduction:
            audio_input["noise_reduction"] = {"type": preset.noise_reduction}
        if audio_input:
            session["audio"]["input"] = audio_input
        if preset.truncation:
            session["truncation"] = preset.truncation

    if temperature is not None:
        session["temperature"] = temperature
    if max_output_tokens:
        session["max_output_tokens"] = max_output_tokens
    return session
