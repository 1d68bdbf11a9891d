import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except SQLAlchemyError as exc:
            logger.error(
                "database_error",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc)[:500],
            )
            return JSONResponse(status_code=500, content={"detail": "Database error"})
        except Exception as exc:
            logger.error(
                "unhandled_error",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
