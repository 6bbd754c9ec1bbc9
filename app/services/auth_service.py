"""Resolve a bearer token to the calling user."""

import logging
from typing import Optional
from supabase import Client
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.strip():
        raise AuthenticationError("No authorization header")

    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()

    if not token:
        raise AuthenticationError("Unauthorized")
    return token


def authenticate_user(client: Client, authorization: Optional[str]) -> str:
    """
    Validate the caller's access token with Supabase Auth.

    Returns:
        str: The authenticated user's id

    Raises:
        AuthenticationError: Missing header or invalid token
    """
    token = extract_bearer_token(authorization)

    try:
        user_response = client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token validation failed: {str(e)}")
        raise AuthenticationError("Unauthorized") from e

    user = getattr(user_response, "user", None)
    if user is None or not getattr(user, "id", None):
        logger.warning("Token did not resolve to a user")
        raise AuthenticationError("Unauthorized")

    return str(user.id)
