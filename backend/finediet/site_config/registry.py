"""Registry of the configuration documents that may live in site_content.

Keys outside this registry are rejected by the config endpoints, and config
keys are rejected by the generic content endpoints.
"""

import copy
from dataclasses import dataclass

from finediet.content.validators import ContentModel
from finediet.site_config.schemas import AssessmentConfig, AvatarMapping, FeatureFlags

DEFAULT_FEATURE_FLAGS = {
    "enableN8nWebhook": True,
    "enableNewResultsFlow": False,
    "allowUnlistedYoutubeEmbeds": True,
}

DEFAULT_AVATAR_MAPPING = {
    "defaultAvatarKey": "level1",
    "mappings": {},
}

DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V2 = {
    "scoring": {
        "thresholds": {
            "axisBandHigh": 2.3,
            "axisBandModerate": 1.3,
        },
    },
}

DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V1 = {
    "scoring": {
        "thresholds": {
            "confidenceThresholds": {"high": 0.3, "medium": 0.15},
            "secondaryAvatarThreshold": 0.15,
        },
    },
}


@dataclass(frozen=True)
class RegistryEntry:
    key: str
    schema: type[ContentModel]
    default: dict
    is_public_readable: bool
    admin_editor_path: str | None
    description: str

    def get_default(self) -> dict:
        return copy.deepcopy(self.default)


CONFIG_REGISTRY: dict[str, RegistryEntry] = {
    entry.key: entry
    for entry in (
        RegistryEntry(
            key="feature-flags:global",
            schema=FeatureFlags,
            default=DEFAULT_FEATURE_FLAGS,
            is_public_readable=True,
            admin_editor_path="/admin/config/feature-flags",
            description="Global feature flags (n8n webhook, new results flow, YouTube embeds)",
        ),
        RegistryEntry(
            key="avatar-mapping:global",
            schema=AvatarMapping,
            default=DEFAULT_AVATAR_MAPPING,
            is_public_readable=True,
            admin_editor_path="/admin/config/avatar-mapping",
            description="Result key to avatar display key mappings",
        ),
        RegistryEntry(
            key="assessment-config:gut-check:2",
            schema=AssessmentConfig,
            default=DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V2,
            is_public_readable=True,
            admin_editor_path="/admin/config/assessments/gut-check-v2",
            description="Gut Check v2 scoring thresholds (axis band classification)",
        ),
        RegistryEntry(
            key="assessment-config:gut-check:1",
            schema=AssessmentConfig,
            default=DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V1,
            is_public_readable=True,
            admin_editor_path="/admin/config/assessments/gut-check-v1",
            description="Gut Check v1 scoring thresholds (confidence, secondary avatar)",
        ),
    )
}


def is_config_key_allowed(key: str) -> bool:
    return key in CONFIG_REGISTRY


def get_registry_entry(key: str) -> RegistryEntry | None:
    return CONFIG_REGISTRY.get(key)


def get_public_readable_keys() -> list[str]:
    return [key for key, entry in CONFIG_REGISTRY.items() if entry.is_public_readable]
