"""
Server entry point.
"""

import logging

import uvicorn

from app.core.config import settings

logger = logging.getLogger(__name__)


def start(host: str | None = None, port: int | None = None) -> None:
    """
    Start the skill package service with uvicorn.

    Args:
        host: Bind address, defaults to settings.HOST
        port: Bind port, defaults to settings.PORT
    """
    host = host or settings.HOST
    port = port or settings.PORT
    reload = settings.ENVIRONMENT == "development"

    logger.info(f"Starting {settings.PROJECT_NAME} {settings.VERSION} on {host}:{port} (reload={reload})")
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    start()
