"""Organization Service

Tenants are created and edited by super_admin only and are never deleted.
Members may read their own organization.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
import logging
import re
import uuid

from database import database
from errors import AuthorizationDenied, NotFound, ValidationFailed, ConflictError
from models import (
    AuditAction,
    OrganizationCreateRequest,
    OrganizationUpdateRequest,
    Principal,
)
from services.scoping import load_caller, NO_ORGANIZATION_MESSAGE
from utils.audit import create_audit_log

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "An organization with this name already exists"


class OrganizationService:
    """Service for organization management."""

    def _get_db(self):
        return database.get_db()

    def _generate_org_id(self) -> str:
        return f"ORG-{uuid.uuid4().hex[:8].upper()}"

    async def _name_taken(self, name: str, exclude_org_id: Optional[str] = None) -> bool:
        db = self._get_db()
        query: Dict[str, Any] = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
        if exclude_org_id:
            query["org_id"] = {"$ne": exclude_org_id}
        return await db.organizations.find_one(query, {"_id": 0, "org_id": 1}) is not None

    async def list_organizations(self, principal: Principal) -> List[Dict[str, Any]]:
        """All organizations for super_admin; otherwise only the caller's own."""
        db = self._get_db()
        caller = await load_caller(principal)
        if principal.is_super_admin:
            return await db.organizations.find({}, {"_id": 0}).sort(
                [("name", 1)]
            ).to_list(length=1000)

        if not caller.get("organization_id"):
            raise AuthorizationDenied(NO_ORGANIZATION_MESSAGE)

        org = await db.organizations.find_one(
            {"org_id": caller["organization_id"]},
            {"_id": 0}
        )
        return [org] if org else []

    async def create_organization(
        self,
        request: OrganizationCreateRequest,
        principal: Principal,
    ) -> Dict[str, Any]:
        await load_caller(principal)
        if not principal.is_super_admin:
            raise AuthorizationDenied("Only super administrators can create organizations")

        name = (request.name or "").strip()
        if not name:
            raise ValidationFailed("Organization name is required")
        if await self._name_taken(name):
            raise ConflictError(DUPLICATE_NAME_MESSAGE)

        now = datetime.now(timezone.utc).isoformat()
        org = {
            "org_id": self._generate_org_id(),
            "name": name,
            "description": request.description or "",
            "active": True,
            "created_at": now,
            "updated_at": now,
        }
        await self._get_db().organizations.insert_one(org)
        org.pop("_id", None)

        logger.info(f"Organization created: {org['org_id']} ({name}) by {principal.id}")
        await create_audit_log(
            action=AuditAction.ORGANIZATION_CREATED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=org["org_id"],
            resource_type="organization",
            resource_id=org["org_id"],
            metadata={"name": name},
        )
        return org

    async def get_organization(self, org_id: str, principal: Principal) -> Dict[str, Any]:
        """Organization detail with member and lead counts."""
        db = self._get_db()

        caller = await load_caller(principal)
        if not principal.is_super_admin:
            if caller.get("organization_id") != org_id:
                raise AuthorizationDenied("You do not have permission to view this organization")

        org = await db.organizations.find_one({"org_id": org_id}, {"_id": 0})
        if not org:
            raise NotFound("Organization not found")

        org["stats"] = {
            "user_count": await db.users.count_documents({"organization_id": org_id}),
            "lead_count": await db.leads.count_documents({"organization_id": org_id}),
        }
        return org

    async def update_organization(
        self,
        org_id: str,
        request: OrganizationUpdateRequest,
        principal: Principal,
    ) -> Dict[str, Any]:
        await load_caller(principal)
        if not principal.is_super_admin:
            raise AuthorizationDenied("Only super administrators can update organizations")

        db = self._get_db()
        org = await db.organizations.find_one({"org_id": org_id}, {"_id": 0})
        if not org:
            raise NotFound("Organization not found")

        update_data: Dict[str, Any] = {}
        if request.name is not None:
            name = request.name.strip()
            if not name:
                raise ValidationFailed("Organization name is required")
            if name != org.get("name") and await self._name_taken(name, exclude_org_id=org_id):
                raise ConflictError(DUPLICATE_NAME_MESSAGE)
            update_data["name"] = name
        if request.description is not None:
            update_data["description"] = request.description
        if request.active is not None:
            update_data["active"] = request.active

        if not update_data:
            return org

        before = {k: org.get(k) for k in update_data}
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        await db.organizations.update_one({"org_id": org_id}, {"$set": update_data})

        updated = {**org, **update_data}
        logger.info(f"Organization {org_id} updated by {principal.id}")
        await create_audit_log(
            action=AuditAction.ORGANIZATION_UPDATED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=org_id,
            resource_type="organization",
            resource_id=org_id,
            before_state=before,
            after_state={k: updated.get(k) for k in before},
        )
        return updated


# Global instance
organization_service = OrganizationService()
