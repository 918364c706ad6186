"""Unit tests for the diary prompt helpers and realtime session builder."""

import pytest
from api.services.diary_analysis import (
    UnparseableOutputError,
    build_analysis_messages,
    build_diary_messages,
    format_conversation,
    parse_json_object,
)
from api.services.realtime_session import build_realtime_session
from daybook.models import AdvancedPreset


class TestParseJsonObject:
    def test_fenced_object(self):
        assert parse_json_object('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_rejects_non_object(self):
        with pytest.raises(UnparseableOutputError) as exc_info:
            parse_json_object("[1, 2]")
        assert exc_info.value.raw == "[1, 2]"

    def test_rejects_garbage(self):
        with pytest.raises(UnparseableOutputError):
            parse_json_object("Sure! Here is your diary.")


def test_diary_messages_without_inline_schema():
    messages = build_diary_messages("system", "text", inline_schema=False)
    assert messages[0] == {"role": "system", "content": "system"}


def test_format_conversation_labels_speakers():
    text = format_conversation(
        [{"role": "user", "content": "안녕"}, {"role": "assistant", "content": "반가워요"}]
    )
    assert text == "사용자: 안녕\n\nAI: 반가워요"


def test_analysis_messages_prefill():
    messages = build_analysis_messages([{"role": "user", "content": "hi"}], prefill=True)
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert "JSON만 응답하고" in messages[0]["content"]


class TestBuildRealtimeSession:
    def test_minimal_session(self):
        session = build_realtime_session(model="gpt-realtime", instructions="hi")
        assert session == {
            "type": "realtime",
            "model": "gpt-realtime",
            "instructions": "hi",
            "audio": {"output": {"voice": "alloy"}},
        }

    def test_preset_fields_mapped(self):
        preset = AdvancedPreset(
            endpoint="realtime",
            version_number=1,
            name="Full",
            temperature=0.9,
            speed=1.1,
            threshold=0.4,
            idle_timeout_ms=6000,
            max_output_tokens=256,
            noise_reduction="far_field",
            truncation="disabled",
        )
        session = build_realtime_session(model="m", instructions="i", voice="cedar", preset=preset)
        assert session["temperature"] == 0.9
        assert session["max_output_tokens"] == 256
        assert session["truncation"] == "disabled"
        assert session["audio"]["output"] == {"voice": "cedar", "speed": 1.1}
        assert session["audio"]["input"] == {
            "turn_detection": {"type": "server_vad", "threshold": 0.4, "idle_timeout_ms": 6000},
            "noise_reduction": {"type": "far_field"},
        }

    def test_explicit_zero_temperature_kept_over_preset(self):
        preset = AdvancedPreset(endpoint="realtime", version_number=1, name="p", temperature=0.9)
        session = build_realtime_session(model="m", instructions="i", temperature=0.0, preset=preset)
        assert session["temperature"] == 0.0
