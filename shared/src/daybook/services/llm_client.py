"""Chat-completion client for OpenAI-compatible and Anthropic providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from daybook.config import Settings
from daybook.errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaError,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class LLMSlotConfig:
    """Configuration for a single named provider slot."""

    slot: str
    api_endpoint: str
    model_id: str
    api_key: str = ""
    api_style: str = "openai"
    requires_api_key: bool = True
    temperature: float = 0.7
    max_tokens: int | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)


@dataclass
class LLMCompletion:
    content: str
    model: str
    total_tokens: int = 0


def _upstream_error_detail(response: httpx.Response) -> tuple[str, str | None]:
    detail = response.text.strip()
    code: str | None = None
    try:
        body = response.json()
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                code = error.get("code") or error.get("type")
                detail = error.get("message") or code or detail
            elif error:
                detail = str(error)
            elif body.get("message"):
                detail = str(body["message"])
    except ValueError:
        pass
    if len(detail) > 400:
        detail = detail[:400]
    return detail, code


def raise_for_upstream_status(response: httpx.Response, provider: str) -> None:
    """Raise a typed upstream error when the provider answered with a failure."""
    if response.is_success:
        return
    detail, code = _upstream_error_detail(response)
    logger.error("%s request failed (%s) at %s: %s", provider, response.status_code, response.request.url, detail)
    if code == "insufficient_quota" or response.status_code == 402:
        raise UpstreamQuotaError(f"{provider} API quota exceeded", detail=detail)
    if code == "invalid_api_key" or response.status_code == 401:
        raise UpstreamAuthError(f"{provider} API key is invalid", detail=detail)
    raise UpstreamError(f"{provider} API error", detail=f"{response.status_code}: {detail}")


class LLMClient:
    """Vendor-agnostic chat client keyed by provider slot."""

    def __init__(self, timeout: float = 120.0) -> None:
        self._client = httpx.AsyncClient(timeout=timeout)
        self._slots: dict[str, LLMSlotConfig] = {}

    def configure_slot(self, config: LLMSlotConfig) -> None:
        """Register a slot configuration."""
        self._slots[config.slot] = config

    def has_slot(self, slot: str) -> bool:
        return slot in self._slots

    @property
    def slots(self) -> list[str]:
        return list(self._slots)

    def get_slot(self, slot: str) -> LLMSlotConfig:
        """Get configuration for a slot."""
        if slot not in self._slots:
            raise ConfigurationError(f"LLM slot '{slot}' not configured")
        config = self._slots[slot]
        if config.requires_api_key and not config.api_key:
            logger.error("API key for LLM slot '%s' is not set", slot)
            raise ConfigurationError("Server configuration error")
        return config

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str], provider: str) -> dict:
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{provider} API unreachable", detail=str(exc)) from exc
        raise_for_upstream_status(response, provider)
        return response.json()

    async def generate(
        self,
        slot: str,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict | None = None,
    ) -> LLMCompletion:
        """Generate a completion using the specified slot."""
        config = self.get_slot(slot)
        if config.api_style == "anthropic":
            return await self._generate_anthropic(config, messages, max_tokens=max_tokens)

        headers = {"Content-Type": "application/json", **config.extra_headers}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        payload: dict[str, Any] = {
            "model": config.model_id,
            "messages": messages,
            "temperature": temperature if temperature is not None else config.temperature,
            "stream": False,
        }
        tokens = max_tokens or config.max_tokens
        if tokens:
            payload["max_tokens"] = tokens
        if response_format:
            payload["response_format"] = response_format

        url = f"{config.api_endpoint.rstrip('/')}/chat/completions"
        logger.info("LLM request to %s slot=%s model=%s", url, slot, config.model_id)

        data = await self._post(url, payload, headers, provider=slot)
        usage = data.get("usage") or {}
        logger.info("LLM response slot=%s tokens=%s", slot, usage)
        return LLMCompletion(
            content=data["choices"][0]["message"]["content"] or "",
            model=config.model_id,
            total_tokens=int(usage.get("total_tokens") or 0),
        )

    async def _generate_anthropic(
        self,
        config: LLMSlotConfig,
        messages: list[dict[str, str]],
        *,
        max_tokens: int | None = None,
    ) -> LLMCompletion:
        headers = {
            "Content-Type": "application/json",
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            **config.extra_headers,
        }
        payload = {
            "model": config.model_id,
            "max_tokens": max_tokens or config.max_tokens or 2000,
            "messages": messages,
        }
        url = f"{config.api_endpoint.rstrip('/')}/messages"
        logger.info("LLM request to %s slot=%s model=%s", url, config.slot, config.model_id)

        data = await self._post(url, payload, headers, provider=config.slot)
        usage = data.get("usage") or {}
        text = "".join(block.get("text", "") for block in data.get("content", []) if isinstance(block, dict))
        return LLMCompletion(
            content=text,
            model=config.model_id,
            total_tokens=int(usage.get("input_tokens") or 0) + int(usage.get("output_tokens") or 0),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def build_llm_client(settings: Settings) -> LLMClient:
    """Client with the four provider slots the diary handlers use."""
    client = LLMClient(timeout=settings.upstream_timeout_seconds)
    client.configure_slot(
        LLMSlotConfig(
            slot="openai",
            api_endpoint=settings.openai_base_url,
            model_id=settings.openai_chat_model,
            api_key=settings.openai_api_key,
        )
    )
    client.configure_slot(
        LLMSlotConfig(
            slot="onpremise",
            api_endpoint=settings.onpremise_llm_url,
            model_id=settings.onpremise_llm_model,
            requires_api_key=False,
        )
    )
    client.configure_slot(
        LLMSlotConfig(
            slot="claude",
            api_endpoint=settings.claude_base_url,
            model_id=settings.claude_model,
            api_key=settings.claude_api_key,
            api_style="anthropic",
            max_tokens=2000,
        )
    )
    client.configure_slot(
        LLMSlotConfig(
            slot="oss",
            api_endpoint=f"{settings.gpt_oss_server_url.rstrip('/')}/v1",
            model_id=settings.gpt_oss_model,
            api_key="dummy-key",
            temperature=0.1,
            max_tokens=2000,
        )
    )
    return client


def strip_json_fencing(text: str) -> str:
    """Strip markdown JSON fencing if present."""
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1 :] if first_newline != -1 else text.lstrip("`")
    if text.endswith("```"):
        text = text[:-3].rstrip()
    return text.strip()
