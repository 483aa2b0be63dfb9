"""
User administration.

Policy checks for updates run in a fixed order:
1. no self role change
2. only super_admin touches super_admin accounts or grants the role
3. no self deactivation
4. the last active super_admin cannot be deactivated, demoted or deleted
5. no self deletion
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from auth import hash_password, validate_password_strength
from database import database
from errors import AuthorizationDenied, NotFound, ValidationFailed, ConflictError
from models import (
    AuditAction,
    Principal,
    UserCreateRequest,
    UserRole,
    UserUpdateRequest,
)
from services.scoping import load_caller, scope_filter, ensure_same_organization
from utils.audit import create_audit_log

logger = logging.getLogger(__name__)

USER_PROJECTION = {"_id": 0, "password_hash": 0}
OTHER_ORGANIZATION_MESSAGE = "You can only manage users in your organization"


def generate_user_id() -> str:
    return f"USR-{uuid.uuid4().hex[:10].upper()}"


def sanitize_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Strip Mongo and credential fields before a user leaves the service layer."""
    return {k: v for k, v in user.items() if k not in ("_id", "password_hash")}


def email_match(email: str) -> Dict[str, Any]:
    """Case-insensitive exact match on a user's email."""
    return {"$regex": f"^{re.escape(email)}$", "$options": "i"}


async def email_taken(email: str, exclude_user_id: Optional[str] = None) -> bool:
    db = database.get_db()
    query: Dict[str, Any] = {"email": email_match(email)}
    if exclude_user_id:
        query["user_id"] = {"$ne": exclude_user_id}
    return await db.users.find_one(query, {"_id": 0, "user_id": 1}) is not None


async def other_active_super_admins(user_id: str) -> int:
    db = database.get_db()
    return await db.users.count_documents({
        "role": UserRole.SUPER_ADMIN.value,
        "active": {"$ne": False},
        "user_id": {"$ne": user_id},
    })


def check_password(password: Optional[str]) -> str:
    valid, message = validate_password_strength(password or "")
    if not valid:
        raise ValidationFailed(message)
    return password


class UserService:
    """Admin operations on user accounts."""

    @staticmethod
    async def list_users(principal: Principal) -> List[Dict[str, Any]]:
        db = database.get_db()
        caller = await load_caller(principal)
        query = scope_filter(principal, caller.get("organization_id"))
        return await db.users.find(query, USER_PROJECTION).sort(
            [("created_at", -1)]
        ).to_list(length=1000)

    @staticmethod
    async def create_user(request: UserCreateRequest, principal: Principal) -> Dict[str, Any]:
        db = database.get_db()
        caller = await load_caller(principal)

        if request.role == UserRole.SUPER_ADMIN and not principal.is_super_admin:
            raise AuthorizationDenied("Only super administrators can create super admin users")

        check_password(request.password)

        if await email_taken(request.email):
            raise ConflictError("User with this email already exists")

        if principal.is_super_admin:
            organization_id = request.organization_id
            if organization_id:
                await UserService._require_organization(organization_id)
        else:
            # Users created by an organization admin join that organization
            organization_id = caller.get("organization_id")
            scope_filter(principal, organization_id)

        now = datetime.now(timezone.utc).isoformat()
        user_doc = {
            "user_id": generate_user_id(),
            "name": request.name,
            "email": request.email,
            "password_hash": hash_password(request.password),
            "role": request.role.value,
            "active": True,
            "organization_id": organization_id,
            "last_login": None,
            "created_at": now,
            "updated_at": now,
        }
        await db.users.insert_one(user_doc)
        user = sanitize_user(user_doc)

        logger.info(f"User {user['user_id']} ({user['role']}) created by {principal.id}")
        await create_audit_log(
            action=AuditAction.USER_CREATED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=organization_id,
            resource_type="user",
            resource_id=user["user_id"],
            metadata={"email": user["email"], "role": user["role"]},
        )
        return user

    @staticmethod
    async def update_user(
        user_id: str,
        request: UserUpdateRequest,
        principal: Principal,
    ) -> Dict[str, Any]:
        db = database.get_db()
        target = await UserService._load_target(user_id, principal)
        is_self = target["user_id"] == principal.id
        target_is_super = target.get("role") == UserRole.SUPER_ADMIN.value
        new_role = request.role.value if request.role else None

        # 1. self role change
        if new_role and is_self and new_role != target.get("role"):
            raise AuthorizationDenied("You cannot change your own role")

        # 2. super_admin accounts and role are reserved to super_admin
        if not principal.is_super_admin:
            if target_is_super:
                raise AuthorizationDenied("Only super administrators can modify super admin roles")
            if new_role == UserRole.SUPER_ADMIN.value:
                raise AuthorizationDenied("Only super administrators can assign super admin role")

        # 3. self deactivation
        if request.active is False and is_self:
            raise AuthorizationDenied("You cannot deactivate your own account")

        # 4. last active super_admin
        if target_is_super and target.get("active") is not False:
            deactivating = request.active is False
            demoting = new_role is not None and new_role != UserRole.SUPER_ADMIN.value
            if (deactivating or demoting) and await other_active_super_admins(user_id) == 0:
                if deactivating:
                    raise AuthorizationDenied("Cannot deactivate the last super admin account")
                raise AuthorizationDenied("Cannot change the role of the last super admin account")

        update_data: Dict[str, Any] = {}
        if request.name:
            update_data["name"] = request.name
        if request.email and request.email != target.get("email"):
            if await email_taken(request.email, exclude_user_id=user_id):
                raise ConflictError("User with this email already exists")
            update_data["email"] = request.email
        if new_role:
            update_data["role"] = new_role
        if request.active is not None:
            update_data["active"] = request.active
        if request.organization_id is not None and request.organization_id != target.get("organization_id"):
            if not principal.is_super_admin:
                raise AuthorizationDenied("Only super administrators can move users between organizations")
            if request.organization_id:
                await UserService._require_organization(request.organization_id)
            update_data["organization_id"] = request.organization_id or None

        before = {k: target.get(k) for k in update_data}
        if request.password:
            update_data["password_hash"] = hash_password(check_password(request.password))

        if not update_data:
            return target

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        await db.users.update_one({"user_id": user_id}, {"$set": update_data})

        updated = sanitize_user({**target, **update_data})
        logger.info(f"User {user_id} updated by {principal.id}: {sorted(k for k in update_data if k != 'password_hash')}")
        await create_audit_log(
            action=AuditAction.USER_UPDATED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=updated.get("organization_id"),
            resource_type="user",
            resource_id=user_id,
            before_state=before,
            after_state={k: updated.get(k) for k in before},
            metadata={"password_changed": "password_hash" in update_data},
        )
        return updated

    @staticmethod
    async def delete_user(user_id: str, principal: Principal) -> None:
        db = database.get_db()
        target = await UserService._load_target(user_id, principal)
        target_is_super = target.get("role") == UserRole.SUPER_ADMIN.value

        if target_is_super and not principal.is_super_admin:
            raise AuthorizationDenied("Only super administrators can delete super admin accounts")

        if target_is_super and target.get("active") is not False:
            if await other_active_super_admins(user_id) == 0:
                raise AuthorizationDenied("Cannot delete the last super admin account")

        if target["user_id"] == principal.id:
            raise AuthorizationDenied("You cannot delete your own account")

        await db.users.delete_one({"user_id": user_id})
        logger.info(f"User {user_id} deleted by {principal.id}")
        await create_audit_log(
            action=AuditAction.USER_DELETED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=target.get("organization_id"),
            resource_type="user",
            resource_id=user_id,
            before_state=target,
        )

    @staticmethod
    async def _load_target(user_id: str, principal: Principal) -> Dict[str, Any]:
        db = database.get_db()
        if not principal.is_admin:
            raise AuthorizationDenied("Insufficient permissions")
        caller = await load_caller(principal)

        target = await db.users.find_one({"user_id": user_id}, USER_PROJECTION)
        if not target:
            raise NotFound("User not found")

        ensure_same_organization(
            principal,
            caller.get("organization_id"),
            target.get("organization_id"),
            OTHER_ORGANIZATION_MESSAGE,
        )
        return target

    @staticmethod
    async def _require_organization(organization_id: str) -> None:
        db = database.get_db()
        org = await db.organizations.find_one({"org_id": organization_id}, {"_id": 0, "org_id": 1})
        if not org:
            raise NotFound("Organization not found")
