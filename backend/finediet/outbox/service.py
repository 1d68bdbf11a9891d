import uuid
from datetime import date, datetime, time, timedelta, timezone

import httpx
import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.assessments.models import AssessmentSubmission
from finediet.config import settings
from finediet.models.base import as_utc, utcnow
from finediet.outbox.models import TARGET_EMAIL_CAPTURE, WebhookOutbox

logger = structlog.get_logger()

METRICS_DAYS = 14


def _http_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


async def get_outbox_row(db: AsyncSession, submission_id: uuid.UUID, target: str) -> WebhookOutbox | None:
    result = await db.execute(
        select(WebhookOutbox).where(
            WebhookOutbox.submission_id == submission_id,
            WebhookOutbox.target == target,
        )
    )
    return result.scalar_one_or_none()


async def enqueue(
    db: AsyncSession,
    submission_id: uuid.UUID,
    target: str,
    webhook_url: str,
    payload: dict,
) -> tuple[WebhookOutbox, bool]:
    """Insert a pending row unless (submission_id, target) already exists. Returns (row, created)."""
    existing = await get_outbox_row(db, submission_id, target)
    if existing is not None:
        return existing, False

    row = WebhookOutbox(
        submission_id=submission_id,
        target=target,
        webhook_url=webhook_url,
        payload=payload,
        status="pending",
    )
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent request for the same pair
        await db.rollback()
        existing = await get_outbox_row(db, submission_id, target)
        if existing is None:
            raise
        return existing, False
    await db.refresh(row)
    logger.info("outbox_enqueued", submission_id=str(submission_id), target=target)
    return row, True


async def fire_webhook(url: str, payload: dict, timeout: float | None = None) -> bool:
    """Best-effort POST. Never raises; returns whether the receiver answered 2xx."""
    timeout = timeout if timeout is not None else settings.WEBHOOK_FIRE_TIMEOUT_SECONDS
    try:
        async with _http_client(timeout) as client:
            response = await client.post(url, json=payload)
    except httpx.TimeoutException:
        logger.warning("webhook_fire_timeout", url=url, timeout=timeout)
        return False
    except httpx.HTTPError as exc:
        logger.warning("webhook_fire_failed", url=url, error=str(exc))
        return False

    if response.is_success:
        logger.info("webhook_fired", url=url, status=response.status_code)
        return True
    logger.warning("webhook_fire_rejected", url=url, status=response.status_code)
    return False


async def _deliver(row: WebhookOutbox, timeout: float) -> str | None:
    """POST one outbox row. Returns None on success, otherwise the error text."""
    try:
        async with _http_client(timeout) as client:
            response = await client.post(row.webhook_url, json=row.payload)
    except httpx.TimeoutException:
        return f"Request timeout after {timeout:g}s"
    except httpx.HTTPError as exc:
        return str(exc) or "Network error"

    if response.is_success:
        return None
    return f"HTTP {response.status_code}: {response.text[:100]}"


async def dispatch_pending(db: AsyncSession) -> dict:
    """Retry email-capture webhooks that failed or have sat pending past the grace period."""
    cutoff = utcnow() - timedelta(seconds=settings.OUTBOX_PENDING_GRACE_SECONDS)
    result = await db.execute(
        select(WebhookOutbox)
        .where(
            WebhookOutbox.target == TARGET_EMAIL_CAPTURE,
            WebhookOutbox.attempts < settings.OUTBOX_MAX_ATTEMPTS,
            or_(
                WebhookOutbox.status == "failed",
                and_(WebhookOutbox.status == "pending", WebhookOutbox.created_at < cutoff),
            ),
        )
        .order_by(WebhookOutbox.created_at.asc())
        .limit(settings.OUTBOX_BATCH_SIZE)
    )
    rows = list(result.scalars().all())

    sent = 0
    failed = 0
    for row in rows:
        attempted_at = utcnow()
        row.attempts += 1
        row.last_attempt_at = attempted_at
        await db.commit()

        error = await _deliver(row, settings.OUTBOX_DISPATCH_TIMEOUT_SECONDS)
        if error is None:
            row.status = "sent"
            row.sent_at = attempted_at
            row.error_message = None
            sent += 1
            logger.info("outbox_row_sent", submission_id=str(row.submission_id), attempts=row.attempts)
        else:
            row.status = "failed"
            row.error_message = error
            failed += 1
            logger.warning(
                "outbox_row_failed",
                submission_id=str(row.submission_id),
                attempts=row.attempts,
                error=error,
            )
        await db.commit()

    logger.info("outbox_dispatch_complete", processed=len(rows), sent=sent, failed=failed)
    return {"success": True, "processed": len(rows), "sent": sent, "failed": failed}


async def mark_status(
    db: AsyncSession,
    submission_id: uuid.UUID,
    target: str,
    status: str,
    error_message: str | None = None,
) -> int:
    values = {"status": status, "last_attempt_at": utcnow()}
    if status == "sent":
        values.update(sent_at=utcnow(), error_message=None)
    else:
        values["error_message"] = error_message
    result = await db.execute(
        update(WebhookOutbox)
        .where(WebhookOutbox.submission_id == submission_id, WebhookOutbox.target == target)
        .values(**values)
    )
    await db.commit()
    return result.rowcount


async def list_outbox(db: AsyncSession, status: str | None, limit: int) -> list[WebhookOutbox]:
    query = select(WebhookOutbox)
    if status:
        query = query.where(WebhookOutbox.status == status)
    query = query.order_by(WebhookOutbox.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_outbox_metrics(db: AsyncSession, today: date | None = None) -> dict:
    """Per-UTC-day submission and email-capture delivery counts for the last 14 days."""
    today = today or utcnow().date()
    start_day = today - timedelta(days=METRICS_DAYS - 1)
    days = [start_day + timedelta(days=i) for i in range(METRICS_DAYS)]
    series = {
        d: {"date": d.isoformat(), "submissions": 0, "sent": 0, "failed": 0, "pending": 0}
        for d in days
    }

    # SQLite and Postgres disagree on date truncation, so bucket in Python
    window_start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)

    sub_result = await db.execute(
        select(AssessmentSubmission.created_at).where(AssessmentSubmission.created_at >= window_start)
    )
    for (created_at,) in sub_result.all():
        bucket = series.get(as_utc(created_at).date())
        if bucket:
            bucket["submissions"] += 1

    outbox_result = await db.execute(
        select(WebhookOutbox.created_at, WebhookOutbox.status).where(
            WebhookOutbox.target == TARGET_EMAIL_CAPTURE,
            WebhookOutbox.created_at >= window_start,
        )
    )
    for created_at, status in outbox_result.all():
        bucket = series.get(as_utc(created_at).date())
        if bucket and status in ("sent", "failed", "pending"):
            bucket[status] += 1

    totals = {
        key: sum(day[key] for day in series.values())
        for key in ("submissions", "sent", "failed", "pending")
    }
    return {"days": [series[d] for d in days], "totals": totals}


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(
        select(WebhookOutbox.status, func.count()).group_by(WebhookOutbox.status)
    )
    return {status: count for status, count in result.all()}
