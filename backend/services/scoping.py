"""
Organization scoping.

Every tenant-data operation resolves the caller's organization from their
stored user record and narrows queries to it. super_admin is never narrowed.
"""
import logging
from typing import Optional, Dict, Any
from database import database
from errors import AuthenticationRequired, AuthorizationDenied
from models import Principal

logger = logging.getLogger(__name__)

NO_ORGANIZATION_MESSAGE = "You do not have an associated organization"


async def load_caller(principal: Principal) -> Dict[str, Any]:
    """Fetch the caller's user record; organization membership lives there, not in the token."""
    db = database.get_db()
    user = await db.users.find_one(
        {"user_id": principal.id},
        {"_id": 0, "password_hash": 0}
    )
    if not user:
        raise AuthenticationRequired("User not found")
    if user.get("active") is False:
        raise AuthorizationDenied("Your account has been deactivated")
    return user


def scope_filter(principal: Principal, organization_id: Optional[str]) -> Dict[str, Any]:
    """Query fragment restricting a collection to the caller's organization."""
    if principal.is_super_admin:
        return {}
    if not organization_id:
        raise AuthorizationDenied(NO_ORGANIZATION_MESSAGE)
    return {"organization_id": organization_id}


def ensure_same_organization(
    principal: Principal,
    caller_organization_id: Optional[str],
    resource_organization_id: Optional[str],
    message: str,
) -> None:
    """Reject access to a resource owned by another organization."""
    if principal.is_super_admin:
        return
    if not caller_organization_id:
        raise AuthorizationDenied(NO_ORGANIZATION_MESSAGE)
    if resource_organization_id != caller_organization_id:
        logger.warning(
            f"Cross-organization access denied for user {principal.id} "
            f"(org {caller_organization_id} -> {resource_organization_id})"
        )
        raise AuthorizationDenied(message)
