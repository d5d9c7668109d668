"""
Authentication utilities.

The analyzer never signs users in; it only checks that the bearer token a
client sends belongs to a Supabase user.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from brandscan.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False so a missing header produces our 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    id: str
    email: Optional[str] = None


async def verify_token(client: Any, token: str) -> AuthenticatedUser:
    """Resolve a Supabase access token to its user.

    Args:
        client: Supabase async client (``SupabaseDB.client``).
        token: The bearer token sent by the caller.

    Raises:
        AuthenticationError: If the token is empty, unknown or expired.
    """
    if not token or not token.strip():
        raise AuthenticationError("Missing access token")

    try:
        response = await client.auth.get_user(token)
    except Exception as exc:
        raise AuthenticationError(f"Could not validate credentials: {exc}") from exc

    user = getattr(response, "user", None)
    if user is None:
        raise AuthenticationError("Invalid token")

    return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """FastAPI dependency returning the caller, or failing with 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    db = request.app.state.db
    try:
        return await verify_token(db.client, credentials.credentials)
    except AuthenticationError as exc:
        logger.info("Rejected request: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        ) from exc
