"""Prompt version management per endpoint."""

from __future__ import annotations

from typing import Literal

from daybook.models import PromptVersion
from daybook.services.version_lifecycle import VersionLifecycle
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.dependencies import get_prompt_lifecycle, valid_endpoint

router = APIRouter()


class PromptCreateRequest(BaseModel):
    name: str
    prompt: str
    description: str | None = None

    @field_validator("name", "prompt")
    @classmethod
    def _non_empty(cls, value: str, info) -> str:
        if not value.strip():
            raise ValueError(f"{info.field_name} field is required and must be a non-empty string")
        return value.strip()


class PromptSwitchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version_id: str = Field(alias="versionId", min_length=1)


def _prompt_dict(v: PromptVersion) -> dict:
    return {
        "id": str(v.id),
        "endpoint": v.endpoint,
        "version": v.version,
        "name": v.name,
        "prompt": v.prompt,
        "description": v.description,
        "isDefault": v.is_default,
        "isCurrent": v.is_current,
        "isDeletable": v.is_deletable,
        "createdAt": v.created_at.isoformat() if v.created_at else None,
        "updatedAt": v.updated_at.isoformat() if v.updated_at else None,
    }


async def _list(endpoint: str, lifecycle: VersionLifecycle) -> dict:
    listing = await lifecycle.list_versions(endpoint)
    return {
        "success": True,
        "endpoint": endpoint,
        "currentVersion": listing.current_version,
        "totalVersions": len(listing.versions),
        "versions": [_prompt_dict(v) for v in listing.versions],
    }


async def _current(endpoint: str, lifecycle: VersionLifecycle) -> dict:
    return {"success": True, **_prompt_dict(await lifecycle.get_current(endpoint))}


async def _create(endpoint: str, req: PromptCreateRequest, lifecycle: VersionLifecycle) -> dict:
    created = await lifecycle.create(endpoint, req.name, {"prompt": req.prompt}, req.description)
    return {
        "success": True,
        "message": "Prompt version created successfully",
        "version": _prompt_dict(created),
    }


async def _switch(endpoint: str, req: PromptSwitchRequest, lifecycle: VersionLifecycle) -> dict:
    current = await lifecycle.switch(endpoint, req.version_id)
    return {
        "success": True,
        "message": f"Current version switched to {current.version}",
        "currentVersion": _prompt_dict(current),
    }


@router.delete("/versions/{version_id}")
async def delete_version(version_id: str, lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle)):
    deleted = await lifecycle.delete(version_id)
    return {
        "success": True,
        "message": f"Version {deleted.version} deleted successfully",
        "deletedVersion": {
            "id": str(deleted.id),
            "endpoint": deleted.endpoint,
            "version": deleted.version,
            "name": deleted.name,
        },
    }


@router.get("/{endpoint}")
async def get_prompt(
    action: Literal["versions"] | None = None,
    endpoint: str = Depends(valid_endpoint),
    lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    if action == "versions":
        return await _list(endpoint, lifecycle)
    return await _current(endpoint, lifecycle)


@router.get("/{endpoint}/versions")
async def list_versions(
    endpoint: str = Depends(valid_endpoint),
    lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    return await _list(endpoint, lifecycle)


@router.get("/{endpoint}/current")
async def get_current_prompt(
    endpoint: str = Depends(valid_endpoint),
    lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    return await _current(endpoint, lifecycle)


@router.post("/{endpoint}", status_code=201)
@router.post("/{endpoint}/create", status_code=201)
async def create_prompt(
    req: PromptCreateRequest,
    endpoint: str = Depends(valid_endpoint),
    lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    return await _create(endpoint, req, lifecycle)


@router.put("/{endpoint}")
@router.put("/{endpoint}/switch")
async def switch_prompt(
    req: PromptSwitchRequest,
    endpoint: str = Depends(valid_endpoint),
    lifecycle: VersionLifecycle = Depends(get_prompt_lifecycle),
):
    return await _switch(endpoint, req, lifecycle)
