"""Advanced preset (realtime/TTS tuning) version management."""

from __future__ import annotations

from typing import Literal

from daybook.errors import InvalidEndpointError
from daybook.models import AdvancedPreset
from daybook.services.version_lifecycle import VersionLifecycle, validate_endpoint
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.dependencies import get_preset_lifecycle

router = APIRouter()


class PresetConfig(BaseModel):
    """Tuning payload; every field is optional, ranges follow the realtime session limits."""

    model_config = ConfigDict(extra="forbid")

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    speed: float | None = Field(default=None, ge=0.25, le=4.0)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    prefix_padding_ms: int | None = Field(default=None, ge=0, le=10_000)
    silence_duration_ms: int | None = Field(default=None, ge=0, le=10_000)
    idle_timeout_ms: int | None = Field(default=None, ge=0)
    max_output_tokens: int | None = Field(default=None, ge=1, le=4096)
    noise_reduction: Literal["near_field", "far_field"] | None = None
    truncation: Literal["auto", "disabled"] | None = None


class _EndpointBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    endpoint: str

    @field_validator("endpoint")
    @classmethod
    def _known_endpoint(cls, value: str) -> str:
        try:
            return validate_endpoint(value)
        except InvalidEndpointError as exc:
            raise ValueError(exc.message) from None


class PresetCreateRequest(_EndpointBody):
    preset_name: str = Field(alias="presetName")
    config: PresetConfig = Field(default_factory=PresetConfig)
    description: str | None = None

    @field_validator("preset_name")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("presetName field is required and must be a non-empty string")
        return value.strip()


class PresetSelectRequest(_EndpointBody):
    preset_id: str = Field(alias="presetId", min_length=1)


def _preset_dict(p: AdvancedPreset) -> dict:
    return {
        "id": str(p.id),
        "endpoint": p.endpoint,
        "version": p.version,
        "presetName": p.name,
        "description": p.description,
        "temperature": p.temperature,
        "speed": p.speed,
        "threshold": p.threshold,
        "prefixPaddingMs": p.prefix_padding_ms,
        "silenceDurationMs": p.silence_duration_ms,
        "idleTimeoutMs": p.idle_timeout_ms,
        "maxOutputTokens": p.max_output_tokens,
        "noiseReduction": p.noise_reduction,
        "truncation": p.truncation,
        "isSystem": p.is_default,
        "isCurrent": p.is_current,
        "isDeletable": p.is_deletable,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    }


def _query_endpoint(endpoint: str | None = Query(default=None)) -> str:
    return validate_endpoint(endpoint)


@router.get("")
@router.get("/list")
async def list_presets(
    endpoint: str = Depends(_query_endpoint),
    lifecycle: VersionLifecycle = Depends(get_preset_lifecycle),
):
    listing = await lifecycle.list_versions(endpoint)
    current = listing.current
    return {
        "success": True,
        "endpoint": endpoint,
        "presets": [_preset_dict(p) for p in listing.versions],
        "currentPreset": _preset_dict(current) if current is not None else None,
    }


@router.get("/current")
async def get_current_preset(
    endpoint: str = Depends(_query_endpoint),
    lifecycle: VersionLifecycle = Depends(get_preset_lifecycle),
):
    return {"success": True, "preset": _preset_dict(await lifecycle.get_current(endpoint))}


@router.post("", status_code=201)
@router.post("/create", status_code=201)
async def create_preset(
    req: PresetCreateRequest,
    lifecycle: VersionLifecycle = Depends(get_preset_lifecycle),
):
    created = await lifecycle.create(
        req.endpoint,
        req.preset_name,
        req.config.model_dump(),
        req.description,
    )
    return {
        "success": True,
        "message": "Preset created successfully",
        "preset": _preset_dict(created),
    }


@router.put("")
@router.put("/switch")
async def switch_preset(
    req: PresetSelectRequest,
    lifecycle: VersionLifecycle = Depends(get_preset_lifecycle),
):
    current = await lifecycle.switch(req.endpoint, req.preset_id)
    return {
        "success": True,
        "message": f"Current preset switched to {current.name}",
        "preset": _preset_dict(current),
    }


@router.delete("")
@router.delete("/delete")
async def delete_preset(
    req: PresetSelectRequest,
    lifecycle: VersionLifecycle = Depends(get_preset_lifecycle),
):
    deleted = await lifecycle.delete(req.preset_id, endpoint=req.endpoint)
    return {
        "success": True,
        "message": f"Preset '{deleted.name}' deleted successfully",
        "deletedPreset": {
            "id": str(deleted.id),
            "endpoint": deleted.endpoint,
            "version": deleted.version,
            "name": deleted.name,
        },
    }
