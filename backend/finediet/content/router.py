from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.content.schemas import (
    ContentListResponse,
    ContentRowResponse,
    ContentStatus,
    ProductCreate,
    ProductListResponse,
    ProductSummary,
)
from finediet.content.service import (
    PUBLIC_CONTENT_KEYS,
    create_product,
    delete_content,
    delete_product,
    get_content_row,
    get_product_content,
    get_public_content,
    list_content_rows,
    list_products,
    publish_content,
    save_content,
)
from finediet.content.validators import clean, format_errors, schema_for_key
from finediet.database import get_db
from finediet.dependencies import get_optional_user, require_editor
from finediet.site_config.registry import is_config_key_allowed
from finediet.users.models import User

router = APIRouter(prefix="/content", tags=["content"])
admin_router = APIRouter(prefix="/admin/content", tags=["content"])
products_router = APIRouter(prefix="/admin/products", tags=["content"])


def _use_draft(draft: bool, user: User | None) -> bool:
    return draft and user is not None and user.can_edit_content


@router.get("/products/{slug}")
async def get_product(
    slug: str,
    draft: bool = Query(False),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    content = await get_product_content(db, slug, _use_draft(draft, user))
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return content


@router.get("/{key}")
async def get_content(
    key: str,
    draft: bool = Query(False),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if key not in PUBLIC_CONTENT_KEYS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    return await get_public_content(db, key, _use_draft(draft, user))


@admin_router.get("", response_model=ContentListResponse)
async def list_content(
    prefix: str | None = Query(None),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_content_rows(db, prefix)
    return ContentListResponse(
        items=[ContentRowResponse.model_validate(r) for r in rows],
        total=len(rows),
    )


@admin_router.post("/{key:path}/publish", response_model=ContentRowResponse)
async def publish(
    key: str,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    row = await publish_content(db, key, user.id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No draft to publish")
    await record_audit(db, user.id, "content.publish", "site_content", row.id, {"key": key})
    return ContentRowResponse.model_validate(row)


@admin_router.get("/{key:path}", response_model=ContentRowResponse)
async def get_content_admin(
    key: str,
    content_status: ContentStatus = Query("published", alias="status"),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    row = await get_content_row(db, key, content_status)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    return ContentRowResponse.model_validate(row)


@admin_router.put("/{key:path}", response_model=ContentRowResponse)
async def put_content(
    key: str,
    data: dict[str, Any] = Body(...),
    content_status: ContentStatus = Query("draft", alias="status"),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    if is_config_key_allowed(key):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Config keys are managed through /admin/config",
        )
    schema = schema_for_key(key)
    if schema is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown content key: {key}")

    try:
        cleaned = clean(schema, data)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Content failed validation", "errors": format_errors(exc)},
        )

    row = await save_content(db, key, content_status, cleaned, user.id)
    await record_audit(
        db, user.id, "content.save", "site_content", row.id,
        {"key": key, "status": content_status},
    )
    return ContentRowResponse.model_validate(row)


@admin_router.delete("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_content(
    key: str,
    content_status: ContentStatus | None = Query(None, alias="status"),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_content(db, key, content_status)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    await record_audit(
        db, user.id, "content.delete", "site_content", None,
        {"key": key, "status": content_status},
    )


@products_router.get("", response_model=ProductListResponse)
async def get_products(
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    products = await list_products(db)
    return ProductListResponse(
        items=[ProductSummary(**p) for p in products],
        total=len(products),
    )


@products_router.post("", response_model=ContentRowResponse, status_code=status.HTTP_201_CREATED)
async def add_product(
    data: ProductCreate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    row = await create_product(db, data.slug, data.title, user.id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product already exists")
    await record_audit(db, user.id, "content.create_product", "site_content", row.id, {"slug": data.slug})
    return ContentRowResponse.model_validate(row)


@products_router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_product(
    slug: str,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_product(db, slug)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    await record_audit(db, user.id, "content.delete_product", "site_content", None, {"slug": slug})
