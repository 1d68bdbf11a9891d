import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.models import ContentAuditLog

logger = structlog.get_logger()


async def record_audit(
    db: AsyncSession,
    actor_id: uuid.UUID | None,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | None = None,
    details: dict | None = None,
) -> None:
    """Write an audit entry in its own commit. Never raises."""
    entry = ContentAuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("audit_write_failed", action=action, entity_type=entity_type, error=str(exc))


async def get_audit_entries(
    db: AsyncSession,
    entity_type: str | None = None,
    action: str | None = None,
    entity_id: uuid.UUID | None = None,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[ContentAuditLog], int]:
    query = select(ContentAuditLog)
    count_query = select(func.count()).select_from(ContentAuditLog)

    filters = []
    if entity_type:
        filters.append(ContentAuditLog.entity_type == entity_type)
    if action:
        filters.append(ContentAuditLog.action == action)
    if entity_id:
        filters.append(ContentAuditLog.entity_id == entity_id)
    if filters:
        query = query.where(*filters)
        count_query = count_query.where(*filters)

    query = query.order_by(ContentAuditLog.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    count_result = await db.execute(count_query)
    return list(result.scalars().all()), count_result.scalar_one()
