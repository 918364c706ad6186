"""Create prompt_versions and advanced_presets tables.

Revision ID: 001_create_version_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

revision: str = "001_create_version_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _version_columns(name_column: str, default_column: str) -> list[sa.Column]:
    return [
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column(name_column, sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(default_column, sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("is_deletable", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "prompt_versions",
        *_version_columns("name", "is_default"),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.UniqueConstraint("endpoint", "version_number", name="uq_prompt_versions_endpoint_version"),
        sa.UniqueConstraint("endpoint", "name", name="uq_prompt_versions_endpoint_name"),
        sa.CheckConstraint("version_number >= 0", name="ck_prompt_versions_version_number"),
    )
    op.create_index(
        "uq_prompt_versions_current",
        "prompt_versions",
        ["endpoint"],
        unique=True,
        postgresql_where=sa.text("is_current = TRUE"),
    )

    op.create_table(
        "advanced_presets",
        *_version_columns("preset_name", "is_system"),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("threshold", sa.Float(), nullable=True),
        sa.Column("prefix_padding_ms", sa.Integer(), nullable=True),
        sa.Column("silence_duration_ms", sa.Integer(), nullable=True),
        sa.Column("idle_timeout_ms", sa.Integer(), nullable=True),
        sa.Column("max_output_tokens", sa.Integer(), nullable=True),
        sa.Column("noise_reduction", sa.Text(), nullable=True),
        sa.Column("truncation", sa.Text(), nullable=True),
        sa.UniqueConstraint("endpoint", "version_number", name="uq_advanced_presets_endpoint_version"),
        sa.UniqueConstraint("endpoint", "preset_name", name="uq_advanced_presets_endpoint_name"),
        sa.CheckConstraint("version_number >= 0", name="ck_advanced_presets_version_number"),
    )
    op.create_index(
        "uq_advanced_presets_current",
        "advanced_presets",
        ["endpoint"],
        unique=True,
        postgresql_where=sa.text("is_current = TRUE"),
    )


def downgrade() -> None:
    op.drop_index("uq_advanced_presets_current", table_name="advanced_presets")
    op.drop_table("advanced_presets")
    op.drop_index("uq_prompt_versions_current", table_name="prompt_versions")
    op.drop_table("prompt_versions")
