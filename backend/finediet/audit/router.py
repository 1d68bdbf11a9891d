import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.schemas import AuditEntryResponse, AuditListResponse
from finediet.audit.service import get_audit_entries
from finediet.database import get_db
from finediet.dependencies import require_admin

router = APIRouter(prefix="/admin/audit-log", tags=["audit"], dependencies=[Depends(require_admin)])


@router.get("", response_model=AuditListResponse)
async def list_audit_entries(
    entity_type: str | None = Query(None),
    action: str | None = Query(None),
    entity_id: uuid.UUID | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    items, total = await get_audit_entries(db, entity_type, action, entity_id, page, per_page)
    return AuditListResponse(
        items=[AuditEntryResponse.model_validate(e) for e in items],
        total=total,
    )
