"""Periodic outbox dispatch, so failed email-capture webhooks are retried without an external cron."""

import asyncio

import structlog

from finediet.config import settings
from finediet.outbox.service import dispatch_pending

logger = structlog.get_logger()


async def run_dispatch_cycle() -> dict:
    from finediet.database import async_session_factory

    async with async_session_factory() as db:
        return await dispatch_pending(db)


async def outbox_dispatch_loop() -> None:
    """Run dispatch_pending every OUTBOX_DISPATCH_INTERVAL_SECONDS indefinitely."""
    interval = settings.OUTBOX_DISPATCH_INTERVAL_SECONDS
    logger.info("outbox_dispatch_loop_started", interval=interval)
    while True:
        try:
            await run_dispatch_cycle()
        except Exception:
            logger.exception("outbox_dispatch_loop_error")
        await asyncio.sleep(interval)
