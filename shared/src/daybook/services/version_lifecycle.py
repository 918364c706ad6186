"""Version lifecycle for prompts and advanced presets.

Both tables hold an append-only, per-endpoint sequence of versions (``v0``,
``v1``, ...) of which at most one is flagged current. :class:`VersionLifecycle`
owns the create/switch/delete transitions for one such table; it is
instantiated once per :class:`VersionedEntity` descriptor.

All coordination goes through the store: a switch locks the endpoint's rows and
runs clear-then-set in one transaction, version numbers are backed by a unique
``(endpoint, version_number)`` constraint, and delete re-checks its guards in
the ``DELETE`` statement itself.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select

from daybook.database import Database
from daybook.errors import (
    ActiveVersionError,
    DuplicateVersionError,
    InvalidEndpointError,
    NoPromptFoundError,
    ProtectedVersionError,
    ValidationError,
    VersionNotDeletableError,
    VersionNotFoundError,
)
from daybook.models import PRESET_CONFIG_FIELDS, AdvancedPreset, PromptVersion
from daybook.models.base import utcnow

logger = logging.getLogger(__name__)

ENDPOINTS = ("organize-diary", "context-extract", "tts", "realtime")


def validate_endpoint(endpoint: str | None) -> str:
    """Return the endpoint if it belongs to the recognized set."""
    if not endpoint:
        raise InvalidEndpointError("Endpoint parameter is required")
    if endpoint not in ENDPOINTS:
        raise InvalidEndpointError(f"Invalid endpoint. Must be one of: {', '.join(ENDPOINTS)}")
    return endpoint


@dataclass(frozen=True)
class VersionedEntity:
    """Describes one versioned table: its model and which columns carry content."""

    model: type[Any]
    content_fields: tuple[str, ...]
    required_content: tuple[str, ...]
    label: str
    protected_message: str

    @property
    def not_found_message(self) -> str:
        return f"{self.label} not found or does not belong to this endpoint"

    @property
    def duplicate_message(self) -> str:
        return f"{self.label} already exists"


PROMPTS = VersionedEntity(
    model=PromptVersion,
    content_fields=("prompt",),
    required_content=("prompt",),
    label="Version",
    protected_message="Cannot delete default version (v0)",
)

PRESETS = VersionedEntity(
    model=AdvancedPreset,
    content_fields=PRESET_CONFIG_FIELDS,
    required_content=(),
    label="Preset",
    protected_message="Cannot delete system preset",
)


@dataclass(frozen=True)
class VersionListing:
    endpoint: str
    versions: list[Any]

    @property
    def current(self) -> Any | None:
        """Flagged version, else the default one, matching get_current."""
        flagged = next((v for v in self.versions if v.is_current), None)
        if flagged is not None:
            return flagged
        return next((v for v in self.versions if v.is_default), None)

    @property
    def current_version(self) -> str | None:
        current = self.current
        return current.version if current is not None else None


@dataclass(frozen=True)
class DeletedVersion:
    id: uuid.UUID
    endpoint: str
    version: str
    name: str


def _coerce_id(value: uuid.UUID | str, entity: VersionedEntity) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise VersionNotFoundError(entity.not_found_message) from None


class VersionLifecycle:
    def __init__(self, database: Database, entity: VersionedEntity) -> None:
        self._database = database
        self._entity = entity

    @property
    def entity(self) -> VersionedEntity:
        return self._entity

    async def list_versions(self, endpoint: str) -> VersionListing:
        model = self._entity.model
        result = await self._database.execute(
            select(model).where(model.endpoint == endpoint).order_by(model.version_number.asc())
        )
        return VersionListing(endpoint=endpoint, versions=list(result.scalars().all()))

    async def get_current(self, endpoint: str) -> Any:
        """Current version, else the default one; a missing default is a provisioning bug."""
        model = self._entity.model
        result = await self._database.execute(
            select(model).where(model.endpoint == endpoint, model.is_current.is_(True)).limit(1)
        )
        record = result.scalars().first()
        if record is not None:
            return record

        result = await self._database.execute(
            select(model).where(model.endpoint == endpoint, model.is_default.is_(True)).limit(1)
        )
        record = result.scalars().first()
        if record is None:
            logger.error("No current or default %s for endpoint=%s", self._entity.label.lower(), endpoint)
            raise NoPromptFoundError(f"No {self._entity.label.lower()} found for this endpoint")
        return record

    def _clean_content(self, content: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(content) - set(self._entity.content_fields)
        if unknown:
            raise ValidationError(f"Unknown content fields: {', '.join(sorted(unknown))}")
        cleaned = {field: content.get(field) for field in self._entity.content_fields}
        for field in self._entity.required_content:
            value = cleaned.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{field} field is required and must be a non-empty string")
            cleaned[field] = value.strip()
        return cleaned

    async def create(
        self,
        endpoint: str,
        name: str,
        content: Mapping[str, Any],
        description: str | None = None,
    ) -> Any:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name field is required and must be a non-empty string")
        values = self._clean_content(content)
        model = self._entity.model

        try:
            async with self._database.transaction() as session:
                result = await session.execute(
                    select(func.max(model.version_number)).where(model.endpoint == endpoint)
                )
                highest = result.scalar()
                record = model(
                    endpoint=endpoint,
                    version_number=0 if highest is None else highest + 1,
                    name=name.strip(),
                    description=(description or "").strip() or None,
                    is_default=False,
                    is_current=False,
                    is_deletable=True,
                    **values,
                )
                session.add(record)
                await session.flush()
        except DuplicateVersionError as exc:
            logger.info("Create lost uniqueness race endpoint=%s name=%s", endpoint, name)
            raise DuplicateVersionError(self._entity.duplicate_message, detail=exc.detail) from exc

        logger.info("Created %s %s for %s", self._entity.label.lower(), record.version, endpoint)
        return record

    async def switch(self, endpoint: str, version_id: uuid.UUID | str) -> Any:
        target_id = _coerce_id(version_id, self._entity)
        model = self._entity.model

        async with self._database.transaction() as session:
            # Locking every row of the endpoint serializes concurrent switches.
            result = await session.execute(
                select(model).where(model.endpoint == endpoint).with_for_update()
            )
            rows = list(result.scalars().all())
            target = next((row for row in rows if row.id == target_id), None)
            if target is None:
                raise VersionNotFoundError(self._entity.not_found_message)

            now = utcnow()
            for row in rows:
                if row.is_current and row.id != target_id:
                    row.is_current = False
                    row.updated_at = now
            # Clear must reach the store before set, or the partial unique index trips.
            await session.flush()

            target.is_current = True
            target.updated_at = now
            await session.flush()

        logger.info("Switched %s current to %s", endpoint, target.version)
        return target

    async def delete(
        self, version_id: uuid.UUID | str, *, endpoint: str | None = None
    ) -> DeletedVersion:
        target_id = _coerce_id(version_id, self._entity)
        model = self._entity.model

        async with self._database.session() as session:
            record = await session.get(model, target_id)
        if record is None or (endpoint is not None and record.endpoint != endpoint):
            raise VersionNotFoundError(self._entity.not_found_message)
        if record.is_default or not record.is_deletable:
            raise ProtectedVersionError(self._entity.protected_message)
        if record.is_current:
            raise ActiveVersionError(
                f"Cannot delete currently active {self._entity.label.lower()}. "
                "Switch to another version first."
            )

        result = await self._database.execute(
            delete(model)
            .where(
                model.id == target_id,
                model.is_deletable.is_(True),
                model.is_default.is_(False),
                model.is_current.is_(False),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise VersionNotDeletableError(
                f"{self._entity.label} cannot be deleted (protected or currently active)"
            )

        logger.info("Deleted %s %s from %s", self._entity.label.lower(), record.version, record.endpoint)
        return DeletedVersion(
            id=record.id,
            endpoint=record.endpoint,
            version=record.version,
            name=record.name,
        )
