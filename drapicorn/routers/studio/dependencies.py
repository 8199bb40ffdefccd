"""FastAPI dependencies shared across studio endpoints."""

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from drapicorn.config import load_gemini_settings, logger
from drapicorn.core import auth, database_ops
from drapicorn.services.generation_service import GenerationOrchestrator
from drapicorn.services.studio_service import StudioService


async def get_current_user(authorization: Optional[str] = Header(default=None)) -> dict:
    """Retrieve the authenticated user from a Supabase Auth Bearer token."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401, detail="Invalid authorization header format"
        )

    user = await auth.verify_access_token(parts[1])
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        await database_ops.ensure_user_profile(user)
    except Exception as exc:
        logger.warning(
            "Failed to ensure user profile",
            extra={"user_id": user.get("id"), "error": str(exc)},
        )

    return user


@lru_cache(maxsize=1)
def get_orchestrator() -> GenerationOrchestrator:
    return GenerationOrchestrator(load_gemini_settings())


@lru_cache(maxsize=1)
def get_studio_service() -> StudioService:
    return StudioService(load_gemini_settings())
