import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.config import settings
from finediet.database import get_db
from finediet.dependencies import require_admin
from finediet.outbox.schemas import (
    DispatchResponse,
    MarkSentRequest,
    MarkSentResponse,
    OutboxListResponse,
    OutboxMetricsResponse,
    OutboxRowResponse,
)
from finediet.outbox.service import count_by_status, dispatch_pending, get_outbox_metrics, list_outbox, mark_status

router = APIRouter(prefix="/outbox", tags=["outbox"])
admin_router = APIRouter(prefix="/admin", tags=["outbox"], dependencies=[Depends(require_admin)])


async def verify_outbox_secret(x_outbox_secret: str | None = Header(None)) -> None:
    expected = settings.OUTBOX_CRON_SECRET
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    if not x_outbox_secret or not hmac.compare_digest(x_outbox_secret, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/dispatch-pending", response_model=DispatchResponse, dependencies=[Depends(verify_outbox_secret)])
async def dispatch(db: AsyncSession = Depends(get_db)):
    return await dispatch_pending(db)


@router.post("/mark-sent", response_model=MarkSentResponse, dependencies=[Depends(verify_outbox_secret)])
async def mark_sent(data: MarkSentRequest, db: AsyncSession = Depends(get_db)):
    error_message = data.error_message if data.status == "failed" else None
    rows = await mark_status(db, data.submission_id, data.target, data.status, error_message)
    return MarkSentResponse(success=True, rows_updated=rows)


@admin_router.get("/outbox", response_model=OutboxListResponse)
async def get_outbox(
    status_filter: str = Query("failed", alias="status", pattern="^(failed|pending|sent|all)$"),
    limit: int = Query(50, ge=1),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_outbox(db, None if status_filter == "all" else status_filter, min(limit, 200))
    return OutboxListResponse(
        items=[OutboxRowResponse.model_validate(r) for r in rows],
        total=len(rows),
        counts=await count_by_status(db),
    )


@admin_router.get("/metrics/outbox", response_model=OutboxMetricsResponse)
async def outbox_metrics(db: AsyncSession = Depends(get_db)):
    return await get_outbox_metrics(db)
