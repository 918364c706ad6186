"""Advanced preset model - versioned realtime/TTS tuning parameters per endpoint."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from daybook.models.base import Base, utcnow

PRESET_CONFIG_FIELDS = (
    "temperature",
    "speed",
    "threshold",
    "prefix_padding_ms",
    "silence_duration_ms",
    "idle_timeout_ms",
    "max_output_tokens",
    "noise_reduction",
    "truncation",
)


class AdvancedPreset(Base):
    __tablename__ = "advanced_presets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column("preset_name", Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    temperature: Mapped[float | None] = mapped_column(Float)
    speed: Mapped[float | None] = mapped_column(Float)
    threshold: Mapped[float | None] = mapped_column(Float)
    prefix_padding_ms: Mapped[int | None] = mapped_column(Integer)
    silence_duration_ms: Mapped[int | None] = mapped_column(Integer)
    idle_timeout_ms: Mapped[int | None] = mapped_column(Integer)
    max_output_tokens: Mapped[int | None] = mapped_column(Integer)
    noise_reduction: Mapped[str | None] = mapped_column(Text)
    truncation: Mapped[str | None] = mapped_column(Text)

    # The system preset plays the role of a prompt endpoint's default version.
    is_default: Mapped[bool] = mapped_column(
        "is_system", Boolean, nullable=False, default=False, server_default=text("FALSE")
    )
    is_current: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("FALSE")
    )
    is_deletable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("TRUE")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("endpoint", "version_number", name="uq_advanced_presets_endpoint_version"),
        UniqueConstraint("endpoint", "preset_name", name="uq_advanced_presets_endpoint_name"),
        CheckConstraint("version_number >= 0", name="ck_advanced_presets_version_number"),
        Index(
            "uq_advanced_presets_current",
            "endpoint",
            unique=True,
            postgresql_where=text("is_current = TRUE"),
            sqlite_where=text("is_current = TRUE"),
        ),
    )

    @property
    def version(self) -> str:
        return f"v{self.version_number}"

    def config(self) -> dict[str, object]:
        return {field: getattr(self, field) for field in PRESET_CONFIG_FIELDS}
