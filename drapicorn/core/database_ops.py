"""
Database operations module for Supabase profiles and projects tables.
Persists generation results keyed by user id and style number.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from drapicorn.config import logger, SUPABASE_URL, SUPABASE_SERVICE_KEY
from drapicorn.models import GenerationResult, TechPackMeta

PROFILES_TABLE = "profiles"
PROJECTS_TABLE = "projects"

# Initialize Supabase client
_supabase_client: Optional[Client] = None


def _get_supabase_client() -> Client:
    """
    Get or create the Supabase client instance.

    Returns:
        Client: Supabase client instance

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not configured
    """
    global _supabase_client

    if _supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
            error_msg = "SUPABASE_URL or SUPABASE_SERVICE_KEY is not configured"
            logger.error(error_msg)
            raise ValueError(error_msg)

        try:
            _supabase_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
            logger.info(
                "Supabase client initialized successfully for database operations"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise

    return _supabase_client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def ensure_user_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create the profile row for a signed-in user if it does not exist yet.

    Args:
        user: Verified user dict (id, email, display_name, avatar_url)

    Returns:
        Dict containing the existing or newly created profile
    """
    try:
        client = _get_supabase_client()
        user_id = user["id"]

        response = (
            client.table(PROFILES_TABLE).select("*").eq("id", user_id).execute()
        )
        if response.data:
            return response.data[0]

        profile_data = {
            "id": user_id,
            "display_name": user.get("display_name"),
            "email": user.get("email"),
            "avatar_url": user.get("avatar_url"),
            "created_at": _now(),
        }

        logger.info(f"Creating profile for user: {user_id}")
        response = client.table(PROFILES_TABLE).insert(profile_data).execute()

        if response.data and len(response.data) > 0:
            return response.data[0]

        error_msg = "Failed to create profile: No data returned"
        logger.error(error_msg)
        raise Exception(error_msg)

    except Exception as e:
        logger.error(f"Error ensuring user profile: {e}")
        raise


async def save_project(
    user_id: str,
    style_no: str,
    meta: Optional[TechPackMeta],
    result: GenerationResult,
) -> Dict[str, Any]:
    """
    Upsert a generation result under the user's project for a style number.

    Args:
        user_id: Signed-in user ID
        style_no: Style number of the design, unique per user
        meta: Tech pack header fields submitted with the request
        result: Merged generation result

    Returns:
        Dict containing the stored project record

    Raises:
        Exception: If database operation fails
    """
    try:
        client = _get_supabase_client()

        record_data = {
            "user_id": user_id,
            "style_no": style_no,
            "meta": meta.model_dump(mode="json", by_alias=True) if meta else None,
            "result": result.model_dump(mode="json", by_alias=True, exclude_none=True),
            "created_at": _now(),
        }

        logger.info(f"Saving project {style_no} for user: {user_id}")

        response = (
            client.table(PROJECTS_TABLE)
            .upsert(record_data, on_conflict="user_id,style_no")
            .execute()
        )

        if response.data and len(response.data) > 0:
            record = response.data[0]
            logger.info(f"Successfully saved project with ID: {record.get('id')}")
            return record

        error_msg = "Failed to save project: No data returned"
        logger.error(error_msg)
        raise Exception(error_msg)

    except Exception as e:
        logger.error(f"Error saving project {style_no}: {e}")
        raise


async def get_project(user_id: str, style_no: str) -> Optional[Dict[str, Any]]:
    """
    Retrieve one project of a user by style number.

    Returns:
        Dict containing the record, or None if not found
    """
    try:
        client = _get_supabase_client()

        logger.debug(f"Retrieving project {style_no} for user: {user_id}")

        response = (
            client.table(PROJECTS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("style_no", style_no)
            .execute()
        )

        if response.data and len(response.data) > 0:
            return response.data[0]

        logger.warning(f"Project not found: {user_id}/{style_no}")
        return None

    except Exception as e:
        logger.error(f"Error retrieving project {style_no}: {e}")
        raise


async def list_projects(user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    """Return the user's most recent projects, newest first."""
    try:
        client = _get_supabase_client()

        response = (
            client.table(PROJECTS_TABLE)
            .select("id, style_no, meta, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Error listing projects for user {user_id}: {e}")
        raise
