from fastapi import Request, HTTPException, status
from typing import Optional
import logging
from pydantic import ValidationError
from auth import decode_access_token, COOKIE_NAME
from models import Principal

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


async def get_current_user(request: Request) -> Optional[Principal]:
    """Resolve the caller from the session cookie or a Bearer token."""
    token = _extract_token(request)
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        return None

    try:
        return Principal(
            id=payload.get("id"),
            email=payload.get("email") or "",
            role=payload.get("role"),
        )
    except ValidationError:
        logger.warning("Rejected token with malformed claims")
        return None


async def require_auth(request: Request) -> Principal:
    """Require valid authentication."""
    user = await get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user


async def require_admin(request: Request) -> Principal:
    """Require admin or super_admin role."""
    user = await require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return user

