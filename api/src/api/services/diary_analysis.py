"""Prompt assembly and output parsing for the diary LLM handlers."""

from __future__ import annotations

import json
import logging
from typing import Any

from daybook.errors import NoPromptFoundError
from daybook.services.llm_client import strip_json_fencing
from daybook.services.version_lifecycle import VersionLifecycle

logger = logging.getLogger(__name__)

DIARY_PROVIDERS = ("openai", "onpremise")
ANALYSIS_MODELS = ("claude", "oss")


def _short_list(description: str) -> dict:
    return {"type": "array", "items": {"type": "string"}, "description": description, "maxItems": 3}


DIARY_SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "oneLiner": {"type": "string", "description": "오늘 하루를 한 문장으로 요약한 내용"},
        "dailyHighlights": _short_list(
            "오늘의 주요 일상 활동 (예: 출근길 음악, 점심 식사, 산책 등) 최대 3개"
        ),
        "goalTracking": _short_list(
            "목표와 관련된 활동이나 진전 (예: 업무 효율 UP, 운동 완료 등) 최대 3개"
        ),
        "gratitude": _short_list("감사한 일들 (예: 친구의 도움, 맛있는 식사 등) 최대 3개"),
        "emotions": _short_list("오늘 느낀 주요 감정들 (예: 뿌듯함, 여유로움 등) 최대 3개"),
        "fullDiary": {"type": "string", "description": "전체 일기 내용을 자연스럽게 정리한 텍스트 (3-5문장)"},
    },
    "required": ["oneLiner", "dailyHighlights", "goalTracking", "gratitude", "emotions", "fullDiary"],
    "additionalProperties": False,
}

DIARY_RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {"name": "diary_summary", "strict": True, "schema": DIARY_SUMMARY_SCHEMA},
}

CONVERSATION_ANALYSIS_TEMPLATE = """다음은 사용자와 AI의 대화 내용입니다. 이 대화를 분석하여 일기 작성에 도움이 되는 인사이트를 추출해주세요.

대화 내용:
{conversation}

다음 JSON 구조로 정확히 응답해주세요:
{{
  "todayOneLine": "오늘을 한 줄로 요약",
  "mainActivities": ["주요 일상 활동1", "주요 일상 활동2", "주요 일상 활동3"],
  "goalTracking": {{
    "mentioned": true/false,
    "goals": ["언급된 목표1", "언급된 목표2"],
    "progress": "목표 진행 상황 요약"
  }},
  "gratefulFor": ["감사한 일1", "감사한 일2", "감사한 일3"],
  "mainMood": {{
    "emotion": "happy/sad/excited/tired/normal/anxious/peaceful",
    "intensity": "low/medium/high",
    "reason": "감정의 이유"
  }},
  "insights": "전체적인 하루 인사이트 및 의미 있는 패턴"
}}

JSON만 응답하고 다른 설명은 추가하지 마세요."""


class UnparseableOutputError(ValueError):
    """Model output that is not the JSON object we asked for."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__("AI 응답을 JSON으로 파싱할 수 없습니다")


async def resolve_prompt(lifecycle: VersionLifecycle, endpoint: str, fallback: str) -> str:
    """Text of the endpoint's current prompt, or ``fallback`` before defaults are provisioned."""
    try:
        version = await lifecycle.get_current(endpoint)
    except NoPromptFoundError:
        logger.warning("No stored prompt for %s; using built-in text", endpoint)
        return fallback
    return version.prompt


def build_diary_messages(system_prompt: str, text: str, *, inline_schema: bool) -> list[dict[str, str]]:
    """Chat messages for organize-diary.

    Providers without structured output support get the schema spelled out in
    the system prompt instead of a ``response_format``.
    """
    if inline_schema:
        schema = json.dumps(DIARY_SUMMARY_SCHEMA["properties"], ensure_ascii=False, indent=2)
        system_prompt = (
            f"{system_prompt}\n\n반드시 다음 JSON 형식으로만 응답하세요 (다른 텍스트 없이 JSON만):\n{schema}"
        )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f'다음 내용을 일기로 정리해주세요:\n\n"{text}"'},
    ]


def build_context_prompt(prompt: str, conversation_text: str) -> str:
    return f"{prompt}\n\n대화 내용:\n{conversation_text}"


def format_conversation(conversation: list[dict[str, str]]) -> str:
    return "\n\n".join(
        f"{'사용자' if turn['role'] == 'user' else 'AI'}: {turn['content']}" for turn in conversation
    )


def build_analysis_messages(conversation: list[dict[str, str]], *, prefill: bool) -> list[dict[str, str]]:
    """Messages for analyze-conversation; ``prefill`` opens the assistant turn with ``{``."""
    prompt = CONVERSATION_ANALYSIS_TEMPLATE.format(conversation=format_conversation(conversation))
    messages = [{"role": "user", "content": prompt}]
    if prefill:
        messages.append({"role": "assistant", "content": "{"})
    return messages


def parse_json_object(content: str) -> dict[str, Any]:
    cleaned = strip_json_fencing(content)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model output is not valid JSON (%d chars)", len(content))
        raise UnparseableOutputError(content) from None
    if not isinstance(parsed, dict):
        raise UnparseableOutputError(content)
    return parsed
