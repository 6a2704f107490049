"""
Health check endpoints.
"""
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import settings
from app.services.skill.resources import MAX_RESOURCE_SIZE_BYTES, MAX_SKILL_SIZE_BYTES


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    name: str
    version: str
    timestamp: datetime
    storage_enabled: bool
    limits: dict[str, int]


router = APIRouter()


@router.get("/", response_model=HealthResponse)
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint to verify the API is running.

    Returns:
        Dict containing status, service identity, storage availability,
        the resource size budgets and the current timestamp.
    """
    return {
        "status": "ok",
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(UTC),
        "storage_enabled": settings.storage_enabled,
        "limits": {
            "max_resource_bytes": MAX_RESOURCE_SIZE_BYTES,
            "max_skill_bytes": MAX_SKILL_SIZE_BYTES,
            "max_upload_bytes": settings.MAX_UPLOAD_SIZE_BYTES,
        },
    }
