import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from finediet.content.service import read_validated, save_content
from finediet.site_config.registry import (
    DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V2,
    RegistryEntry,
    get_registry_entry,
)


async def get_config_with_source(db: AsyncSession, entry: RegistryEntry) -> tuple[dict, bool]:
    """Returns (value, is_default)."""
    value = await read_validated(db, entry.key, entry.schema)
    if value is None:
        return entry.get_default(), True
    return value, False


async def get_config(db: AsyncSession, key: str) -> dict:
    entry = get_registry_entry(key)
    if entry is None:
        raise KeyError(key)
    value, _ = await get_config_with_source(db, entry)
    return value


async def save_config(db: AsyncSession, key: str, value: dict, actor_id: uuid.UUID | None):
    return await save_content(db, key, "published", value, actor_id)


async def get_feature_flags(db: AsyncSession) -> dict:
    return await get_config(db, "feature-flags:global")


async def get_avatar_mapping(db: AsyncSession) -> dict:
    return await get_config(db, "avatar-mapping:global")


async def get_avatar_key(db: AsyncSession, result_key: str) -> str:
    mapping = await get_avatar_mapping(db)
    return mapping.get("mappings", {}).get(result_key) or mapping["defaultAvatarKey"]


async def get_assessment_config(db: AsyncSession, assessment_type: str, version: int | str) -> dict:
    if assessment_type == "gut-check" and str(version) in ("1", "2"):
        return await get_config(db, f"assessment-config:gut-check:{version}")
    return {"scoring": {"thresholds": dict(DEFAULT_ASSESSMENT_CONFIG_GUT_CHECK_V2["scoring"]["thresholds"])}}


async def webhooks_enabled(db: AsyncSession) -> bool:
    flags = await get_feature_flags(db)
    return bool(flags.get("enableN8nWebhook"))
