"""SQLAlchemy ORM models for Daybook."""

from daybook.models.base import Base
from daybook.models.prompt_version import PromptVersion
from daybook.models.advanced_preset import PRESET_CONFIG_FIELDS, AdvancedPreset

__all__ = [
    "Base",
    "PromptVersion",
    "AdvancedPreset",
    "PRESET_CONFIG_FIELDS",
]
