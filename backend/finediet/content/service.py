import uuid

import structlog
from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.content.defaults import default_for_key, product_skeleton
from finediet.content.models import SiteContent
from finediet.content.validators import PRODUCT_PREFIX, ContentModel, ProductPageContent, clean, schema_for_key

logger = structlog.get_logger()

PUBLIC_CONTENT_KEYS = ("navigation", "home", "footer", "waitlist", "global")


async def get_content_row(db: AsyncSession, key: str, status: str = "published") -> SiteContent | None:
    result = await db.execute(
        select(SiteContent).where(SiteContent.key == key, SiteContent.status == status)
    )
    return result.scalar_one_or_none()


async def list_content_rows(db: AsyncSession, prefix: str | None = None) -> list[SiteContent]:
    query = select(SiteContent)
    if prefix:
        query = query.where(SiteContent.key.startswith(prefix, autoescape=True))
    query = query.order_by(SiteContent.key, SiteContent.status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def save_content(
    db: AsyncSession,
    key: str,
    status: str,
    data: dict,
    actor_id: uuid.UUID | None,
) -> SiteContent:
    row = await get_content_row(db, key, status)
    if row is None:
        row = SiteContent(key=key, status=status, data=data, updated_by=actor_id)
        db.add(row)
    else:
        row.data = data
        row.updated_by = actor_id
    await db.commit()
    await db.refresh(row)
    return row


async def delete_content(db: AsyncSession, key: str, status: str | None = None) -> int:
    stmt = delete(SiteContent).where(SiteContent.key == key)
    if status:
        stmt = stmt.where(SiteContent.status == status)
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount


async def publish_content(db: AsyncSession, key: str, actor_id: uuid.UUID | None) -> SiteContent | None:
    """Copy the draft row over the published row. None when there is no draft."""
    draft = await get_content_row(db, key, "draft")
    if draft is None:
        return None
    return await save_content(db, key, "published", dict(draft.data), actor_id)


async def read_validated(
    db: AsyncSession,
    key: str,
    schema: type[ContentModel],
    draft: bool = False,
) -> dict | None:
    """Stored document cleaned through its schema, or None when missing or invalid."""
    row = await get_content_row(db, key, "draft" if draft else "published")
    if row is None or not row.data:
        return None
    try:
        return clean(schema, row.data)
    except ValidationError as exc:
        logger.warning("content_invalid", key=key, status=row.status, errors=exc.error_count())
        return None


async def get_public_content(db: AsyncSession, key: str, draft: bool = False) -> dict:
    data = await read_validated(db, key, schema_for_key(key), draft)
    if data is None:
        return default_for_key(key)
    return data


async def get_product_content(db: AsyncSession, slug: str, draft: bool = False) -> dict | None:
    return await read_validated(db, f"{PRODUCT_PREFIX}{slug}", ProductPageContent, draft)


async def list_products(db: AsyncSession) -> list[dict]:
    rows = await list_content_rows(db, PRODUCT_PREFIX)
    products = []
    for row in rows:
        if row.status != "published":
            continue
        hero = (row.data or {}).get("hero") or {}
        products.append({
            "slug": row.key[len(PRODUCT_PREFIX):],
            "title": hero.get("title") or "",
            "updated_at": row.updated_at,
        })
    return products


async def create_product(
    db: AsyncSession, slug: str, title: str, actor_id: uuid.UUID | None,
) -> SiteContent | None:
    """Create the published product row. None when the slug is taken."""
    key = f"{PRODUCT_PREFIX}{slug}"
    if await get_content_row(db, key, "published") is not None:
        return None
    return await save_content(db, key, "published", product_skeleton(title), actor_id)


async def delete_product(db: AsyncSession, slug: str) -> int:
    return await delete_content(db, f"{PRODUCT_PREFIX}{slug}")
