"""Default (v0) prompt versions and system presets, plus the bootstrap helper."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daybook.database import Database
from daybook.errors import DuplicateVersionError
from daybook.models import AdvancedPreset, PromptVersion

logger = logging.getLogger(__name__)

ORGANIZE_DIARY_PROMPT = """당신은 친근하고 따뜻한 일기 작성 도우미입니다.
사용자가 말한 내용을 바탕으로 구조화된 일기 요약을 생성해주세요.

규칙:
1. 한국어로 작성하세요
2. 1인칭 시점을 유지하세요 (나는, 내가 등)
3. 감정과 느낌을 풍부하게 표현하세요
4. 각 카테고리에 해당하는 내용이 없으면 빈 배열로 반환하세요
5. 각 항목은 간결하게 2-4단어로 표현하세요
6. oneLiner는 오늘 하루를 대표하는 한 문장으로 작성하세요
7. fullDiary는 전체 내용을 자연스럽게 3-5문장으로 정리하세요"""

CONTEXT_EXTRACT_PROMPT = """다음 대화 내용을 분석하여 주요 컨텍스트를 추출해주세요:
1. 대화의 주요 주제
2. 사용자의 의도나 목적
3. 중요한 정보나 키워드
4. 감정 상태나 톤
5. 대화의 흐름 요약

결과는 간결하게 불릿 포인트 형식으로 정리해주세요."""

TTS_INSTRUCTIONS = "친근하고 밝은 톤으로 말해주세요"

REALTIME_INSTRUCTIONS = "당신은 친근한 AI 도우미입니다."

DEFAULT_PROMPTS: dict[str, str] = {
    "organize-diary": ORGANIZE_DIARY_PROMPT,
    "context-extract": CONTEXT_EXTRACT_PROMPT,
    "tts": TTS_INSTRUCTIONS,
    "realtime": REALTIME_INSTRUCTIONS,
}

DEFAULT_PRESETS: dict[str, dict[str, object]] = {
    "realtime": {
        "temperature": 0.8,
        "speed": 1.0,
        "threshold": 0.5,
        "prefix_padding_ms": 300,
        "silence_duration_ms": 500,
        "idle_timeout_ms": None,
        "max_output_tokens": None,
        "noise_reduction": None,
        "truncation": "auto",
    },
}


def _build_default_prompt(endpoint: str, prompt: str, *, is_current: bool) -> PromptVersion:
    return PromptVersion(
        endpoint=endpoint,
        version_number=0,
        name="Default",
        prompt=prompt,
        description="System default prompt.",
        is_default=True,
        is_current=is_current,
        is_deletable=False,
    )


def _build_system_preset(
    endpoint: str, config: dict[str, object], *, is_current: bool
) -> AdvancedPreset:
    return AdvancedPreset(
        endpoint=endpoint,
        version_number=0,
        name="Default",
        description="System preset.",
        is_default=True,
        is_current=is_current,
        is_deletable=False,
        **config,
    )


async def _endpoints_where(session: AsyncSession, model: type, flag) -> set[str]:
    result = await session.execute(select(model.endpoint).where(flag.is_(True)))
    return set(result.scalars().all())


async def ensure_default_versions(database: Database) -> int:
    """Backfill missing v0 defaults; returns how many rows were created.

    A backfilled default becomes current unless its endpoint already has a
    current version. Safe to run from several workers at once: a worker that
    loses the insert race sees the unique constraint fire and leaves
    provisioning to the winner.
    """
    try:
        async with database.transaction() as session:
            seeded_prompts = await _endpoints_where(session, PromptVersion, PromptVersion.is_default)
            current_prompts = await _endpoints_where(session, PromptVersion, PromptVersion.is_current)
            seeded_presets = await _endpoints_where(session, AdvancedPreset, AdvancedPreset.is_default)
            current_presets = await _endpoints_where(session, AdvancedPreset, AdvancedPreset.is_current)

            created = [
                _build_default_prompt(endpoint, prompt, is_current=endpoint not in current_prompts)
                for endpoint, prompt in DEFAULT_PROMPTS.items()
                if endpoint not in seeded_prompts
            ]
            created += [
                _build_system_preset(endpoint, config, is_current=endpoint not in current_presets)
                for endpoint, config in DEFAULT_PRESETS.items()
                if endpoint not in seeded_presets
            ]
            session.add_all(created)
            if created:
                await session.flush()
    except DuplicateVersionError:
        logger.info("Default versions provisioned concurrently by another worker")
        return 0

    if created:
        logger.info("Provisioned %d default versions", len(created))
    return len(created)
