"""
Main API router that includes all sub-routers.
"""

from fastapi import APIRouter

from app.api.v1.routers.health import router as health_router
from app.api.v1.routers.inspector import router as inspector_router
from app.api.v1.routers.skills import router as skills_router

# Create main API router
router = APIRouter(prefix="/v1")

# Include sub-routers
router.include_router(health_router, prefix="/health", tags=["Health"])
router.include_router(inspector_router, prefix="/inspector", tags=["Inspector"])
router.include_router(skills_router, prefix="/skills", tags=["Skills"])
