"""
Main FastAPI application.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.v1.middlewares import RequestLoggingMiddleware
from app.api.v1.routes import router as api_v1_router
from app.core.config import settings
from app.services.skill.archive import CORRUPT_ARCHIVE_MESSAGE, InvalidArchiveError
from app.services.skill.storage import StorageError

logger = logging.getLogger(__name__)

sentry_sdk.init(
    dsn=settings.SENTRY_DSN,
    environment=settings.ENVIRONMENT,
    traces_sample_rate=1.0,
    send_default_pii=False,
    integrations=[
        StarletteIntegration(
            transaction_style="endpoint",
            failed_request_status_codes={*range(500, 599)},
        ),
        FastApiIntegration(
            transaction_style="endpoint",
            failed_request_status_codes={*range(500, 599)},
        ),
    ],
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # pragma: no cover
    """
    Lifespan context manager for FastAPI.
    Logs whether resource uploads go to an object store.
    """
    if settings.storage_enabled:
        logger.info(f"Object storage enabled - bucket: {settings.STORAGE_BUCKET}")
    else:
        logger.info("Object storage not configured, resources stay inline")
    yield


async def invalid_archive_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Corrupt archive on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"status": "error", "code": "ARCHIVE_INVALID", "message": CORRUPT_ARCHIVE_MESSAGE},
    )


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Object store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"status": "error", "code": "STORAGE_ERROR", "message": str(exc)},
    )


def create_application() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.VERSION,
        docs_url=settings.DOCS_URL,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-Id"],
    )

    request_logging_middleware = RequestLoggingMiddleware()
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_logging_middleware)

    app.add_exception_handler(InvalidArchiveError, invalid_archive_handler)
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(api_v1_router, prefix=settings.API_PREFIX)

    return app


app = create_application()
