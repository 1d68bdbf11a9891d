import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finediet.assessments.router import account_router as assessments_account_router
from finediet.assessments.router import admin_router as assessments_admin_router
from finediet.assessments.router import router as assessments_router
from finediet.audit.router import router as audit_router
from finediet.auth.router import router as auth_router
from finediet.config import settings
from finediet.content.router import admin_router as content_admin_router
from finediet.content.router import products_router
from finediet.content.router import router as content_router
from finediet.middleware.error_handler import ErrorHandlerMiddleware
from finediet.middleware.logging import RequestLoggingMiddleware
from finediet.outbox.router import admin_router as outbox_admin_router
from finediet.outbox.router import router as outbox_router
from finediet.people.router import account_router as people_account_router
from finediet.people.router import admin_router as people_admin_router
from finediet.people.router import router as people_router
from finediet.people.router import waitlist_router
from finediet.question_sets.router import admin_router as question_sets_admin_router
from finediet.question_sets.router import router as question_sets_router
from finediet.results_packs.router import admin_router as results_packs_admin_router
from finediet.results_packs.router import router as results_packs_router
from finediet.seo.router import admin_router as seo_admin_router
from finediet.seo.router import router as seo_router
from finediet.site_config.router import admin_router as config_admin_router
from finediet.site_config.router import router as config_router
from finediet.users.router import router as users_router
from finediet.video.router import router as video_router

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from finediet.outbox.dispatcher import outbox_dispatch_loop

    tasks = []
    if settings.OUTBOX_DISPATCH_INTERVAL_SECONDS > 0:
        tasks.append(asyncio.create_task(outbox_dispatch_loop()))
    yield
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fine Diet",
        version="0.1.0",
        docs_url="/docs",
        lifespan=lifespan,
    )

    cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    for router in (
        auth_router,
        users_router,
        audit_router,
        content_router,
        content_admin_router,
        products_router,
        config_router,
        config_admin_router,
        seo_router,
        seo_admin_router,
        question_sets_router,
        question_sets_admin_router,
        results_packs_router,
        results_packs_admin_router,
        assessments_router,
        assessments_account_router,
        assessments_admin_router,
        outbox_router,
        outbox_admin_router,
        people_router,
        waitlist_router,
        people_account_router,
        people_admin_router,
        video_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
