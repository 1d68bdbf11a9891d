from typing import Any

from pydantic import BaseModel, Field

from finediet.content.validators import ContentModel


class FeatureFlags(ContentModel):
    enable_n8n_webhook: bool
    enable_new_results_flow: bool | None = None
    allow_unlisted_youtube_embeds: bool | None = None


class ConfidenceThresholds(ContentModel):
    high: float = Field(gt=0)
    medium: float = Field(gt=0)


class ScoringThresholds(ContentModel):
    """Every threshold may be omitted, but a key that is present must hold a number."""

    axis_band_high: float = Field(None, gt=0)
    axis_band_moderate: float = Field(None, gt=0)
    confidence_thresholds: ConfidenceThresholds = None
    secondary_avatar_threshold: float = Field(None, ge=0)


class ScoringConfig(ContentModel):
    thresholds: ScoringThresholds


class AssessmentConfig(ContentModel):
    scoring: ScoringConfig


class AvatarMapping(ContentModel):
    default_avatar_key: str
    mappings: dict[str, str]


class ConfigValueResponse(BaseModel):
    key: str
    value: dict[str, Any]


class ConfigEntryResponse(BaseModel):
    key: str
    description: str
    is_public_readable: bool
    admin_editor_path: str | None
    value: dict[str, Any]
    is_default: bool


class ConfigListResponse(BaseModel):
    items: list[ConfigEntryResponse]
