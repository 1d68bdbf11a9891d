from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.content.validators import clean, format_errors
from finediet.database import get_db
from finediet.dependencies import require_admin
from finediet.site_config.registry import CONFIG_REGISTRY, get_public_readable_keys, get_registry_entry
from finediet.site_config.schemas import ConfigEntryResponse, ConfigListResponse, ConfigValueResponse
from finediet.site_config.service import get_config_with_source, save_config
from finediet.users.models import User

router = APIRouter(prefix="/config", tags=["config"])
admin_router = APIRouter(prefix="/admin/config", tags=["config"])


@router.get("/{key}", response_model=ConfigValueResponse)
async def read_config(key: str, db: AsyncSession = Depends(get_db)):
    if key not in get_public_readable_keys():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Config not found")
    entry = get_registry_entry(key)
    value, _ = await get_config_with_source(db, entry)
    return ConfigValueResponse(key=key, value=value)


@admin_router.get("", response_model=ConfigListResponse)
async def list_config(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items = []
    for entry in CONFIG_REGISTRY.values():
        value, is_default = await get_config_with_source(db, entry)
        items.append(ConfigEntryResponse(
            key=entry.key,
            description=entry.description,
            is_public_readable=entry.is_public_readable,
            admin_editor_path=entry.admin_editor_path,
            value=value,
            is_default=is_default,
        ))
    return ConfigListResponse(items=items)


@admin_router.put("/{key}", response_model=ConfigValueResponse)
async def put_config(
    key: str,
    value: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entry = get_registry_entry(key)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown config key: {key}")

    try:
        cleaned = clean(entry.schema, value)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Config failed validation", "errors": format_errors(exc)},
        )

    row = await save_config(db, key, cleaned, admin.id)
    await record_audit(db, admin.id, "config.save", "site_content", row.id, {"key": key})
    return ConfigValueResponse(key=key, value=cleaned)
