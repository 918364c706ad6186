"""LLM-backed diary handlers: organize, context extraction, conversation analysis."""

from __future__ import annotations

import logging
from typing import Literal

from daybook.errors import ValidationError
from daybook.services.llm_client import LLMClient
from daybook.services.version_defaults import CONTEXT_EXTRACT_PROMPT, ORGANIZE_DIARY_PROMPT
from daybook.services.version_lifecycle import VersionLifecycle
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.dependencies import get_llm_client, get_prompt_lifecycle
from api.error_handlers import error_body
from api.services.diary_analysis import (
    ANALYSIS_MODELS,
    DIARY_PROVIDERS,
    DIARY_RESPONSE_FORMAT,
    UnparseableOutputError,
    build_analysis_messages,
    build_context_prompt,
    build_diary_messages,
    parse_json_object,
    resolve_prompt,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class OrganizeDiaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    llm_provider: str = Field(default="openai", alias="llmProvider")

    @field_validator("text")
    @classmethod
    def _non_empty_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text 필드가 필요합니다 (음성 전사된 텍스트)")
        return value


class ContextExtractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_text: str = Field(alias="conversationText")
    custom_prompt: str | None = Field(default=None, alias="customPrompt")
    llm_provider: str = Field(default="openai", alias="llmProvider")

    @field_validator("conversation_text")
    @classmethod
    def _non_empty_conversation(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("대화 내용이 비어있습니다.")
        return value


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AnalyzeConversationRequest(BaseModel):
    conversation: list[ConversationTurn] = Field(min_length=1)
    model: str = "claude"


def _check_provider(provider: str) -> None:
    if provider not in DIARY_PROVIDERS:
        raise ValidationError(f"지원하지 않는 llmProvider: {provider}")


@router.post("/organize-diary")
async def organize_diary(
    req: OrganizeDiaryRequest,
    llm: LLMClient = Depends(get_llm_client),
    prompts: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    _check_provider(req.llm_provider)
    system_prompt = await resolve_prompt(prompts, "organize-diary", ORGANIZE_DIARY_PROMPT)
    structured = req.llm_provider == "openai"
    logger.info("Organizing diary [%s] for text length %d", req.llm_provider, len(req.text))

    completion = await llm.generate(
        req.llm_provider,
        build_diary_messages(system_prompt, req.text, inline_schema=not structured),
        temperature=0.7,
        max_tokens=1000,
        response_format=DIARY_RESPONSE_FORMAT if structured else None,
    )
    try:
        summary = parse_json_object(completion.content)
    except UnparseableOutputError as exc:
        return JSONResponse(
            status_code=500,
            content={**error_body("일기 정리 중 오류가 발생했습니다", str(exc)), "rawResponse": exc.raw},
        )
    return {
        "success": True,
        "summary": summary,
        "originalTextLength": len(req.text),
        "tokensUsed": completion.total_tokens,
        "llmProvider": req.llm_provider,
        "model": completion.model,
    }


@router.post("/context/extract")
async def extract_context(
    req: ContextExtractRequest,
    llm: LLMClient = Depends(get_llm_client),
    prompts: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    _check_provider(req.llm_provider)
    prompt = req.custom_prompt or await resolve_prompt(prompts, "context-extract", CONTEXT_EXTRACT_PROMPT)
    logger.info(
        "Extracting context [%s] for conversation length %d", req.llm_provider, len(req.conversation_text)
    )
    completion = await llm.generate(
        req.llm_provider,
        [{"role": "user", "content": build_context_prompt(prompt, req.conversation_text)}],
        temperature=0.7,
        max_tokens=500,
    )
    return {
        "success": True,
        "context": completion.content,
        "conversationLength": len(req.conversation_text),
        "tokensUsed": completion.total_tokens,
        "llmProvider": req.llm_provider,
        "model": completion.model,
    }


@router.post("/analyze-conversation")
async def analyze_conversation(req: AnalyzeConversationRequest, llm: LLMClient = Depends(get_llm_client)):
    if req.model not in ANALYSIS_MODELS:
        raise ValidationError('Invalid model. Use "claude" or "oss"')
    prefill = req.model == "claude"
    conversation = [turn.model_dump() for turn in req.conversation]

    completion = await llm.generate(req.model, build_analysis_messages(conversation, prefill=prefill))
    # The prefilled "{" is not echoed back by the provider.
    raw = "{" + completion.content if prefill else completion.content
    try:
        analysis = parse_json_object(raw)
    except UnparseableOutputError as exc:
        return JSONResponse(
            status_code=500,
            content={**error_body(str(exc)), "rawResponse": exc.raw},
        )
    return {
        "success": True,
        "model": req.model,
        "analysis": analysis,
        "conversationLength": len(req.conversation),
    }
