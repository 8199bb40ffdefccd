"""Router package exposing all API routers."""

from fastapi import APIRouter

from .studio.router import router as studio_router

router = APIRouter()
router.include_router(studio_router)

__all__ = ["router", "studio_router"]
