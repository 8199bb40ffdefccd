"""
Authentication module for verifying Supabase Auth access tokens.
Sign-in itself happens client-side against Supabase Auth.
"""

from typing import Optional, Dict, Any

from supabase import Client

from drapicorn.config import logger, SUPABASE_URL, SUPABASE_SERVICE_KEY


# Initialize Supabase client
_supabase_client: Optional[Client] = None


def _get_supabase_client() -> Client:
    """
    Get or create the Supabase client instance.

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
            from supabase import create_client

            _supabase_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
            logger.info("Supabase client initialized successfully for auth operations")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise

    return _supabase_client


async def verify_access_token(access_token: str) -> Optional[Dict[str, Any]]:
    """
    Verify a Supabase Auth access token and return user data.

    Args:
        access_token: JWT access token from Supabase Auth

    Returns:
        User dict if token is valid, None otherwise
    """
    try:
        client = _get_supabase_client()

        logger.debug("Verifying Supabase Auth access token")

        response = client.auth.get_user(access_token)

        if response and getattr(response, "user", None):
            user = response.user
            metadata = user.user_metadata or {}
            user_email = user.email or ""
            user_data = {
                "id": user.id,
                "email": user_email,
                "display_name": metadata.get(
                    "full_name", user_email.split("@")[0] if user_email else "user"
                ),
                "avatar_url": metadata.get("avatar_url"),
            }
            logger.debug(f"Token verified for user: {user.id}")
            return user_data

        logger.warning("Invalid or expired access token")
        return None

    except Exception as e:
        logger.error(f"Error verifying access token: {e}")
        return None
