"""
Lead Management Service

Core business logic for lead intake and case tracking.

Handles:
- Lead creation with duplicate detection
- Organization-scoped listing and search
- Status transitions with an append-only history
- Dynamic field replacement
- Optimistic concurrency on updates (version counter)
"""
import logging
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple
from database import database
from errors import AuthorizationDenied, NotFound, ConflictError
from models import (
    AuditAction,
    LeadStatus,
    LeadCreateRequest,
    LeadUpdateRequest,
    Principal,
)
from services import lead_lifecycle
from services.scoping import load_caller, scope_filter, ensure_same_organization
from utils.audit import create_audit_log

logger = logging.getLogger(__name__)

LEAD_ACCESS_DENIED = "You do not have permission to access this lead"
CONCURRENT_UPDATE_MESSAGE = "Lead was modified by another request; reload and try again"


def generate_lead_id() -> str:
    """Generate unique lead ID in format LEAD-<timestamp>-XXXXXX."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:6].upper()
    return f"LEAD-{timestamp}-{unique}"


def lead_display_name(lead: Dict[str, Any]) -> str:
    return f"{lead.get('first_name') or ''} {lead.get('last_name') or ''}".strip()


def duplicate_note(notes: Optional[str], reason: str, existing: Dict[str, Any]) -> str:
    return (
        f"{notes or ''}\n\n[SYSTEM] This lead has been marked as a duplicate because the "
        f"{reason} matches an existing lead ({lead_display_name(existing)})."
    )


class LeadService:
    """Service for lead management operations."""

    @staticmethod
    async def create_lead(request: LeadCreateRequest, principal: Principal) -> Dict[str, Any]:
        """
        Create a lead in the caller's organization.

        A lead whose email (or, failing that, phone) exactly matches an
        in-scope lead is stored with status DUPLICATE.
        """
        db = database.get_db()
        caller = await load_caller(principal)
        organization_id = caller.get("organization_id")
        scope = scope_filter(principal, organization_id)

        existing, reason = await LeadService.find_duplicate(
            email=request.email,
            phone=request.phone,
            scope=scope,
        )
        is_duplicate = existing is not None

        notes = request.notes or ""
        if is_duplicate:
            status = LeadStatus.DUPLICATE.value
            notes = duplicate_note(request.notes, reason, existing)
            history_note = f"Lead created and automatically marked as DUPLICATE (matching {reason})"
        else:
            status = request.status.value if request.status else LeadStatus.PENDING.value
            history_note = "Lead created"

        now = datetime.now(timezone.utc).isoformat()
        lead_doc = {
            "lead_id": generate_lead_id(),
            "first_name": request.first_name,
            "last_name": request.last_name,
            "email": request.email,
            "phone": request.phone,
            "date_of_birth": request.date_of_birth,
            "address": request.address,
            "application_type": request.application_type,
            "lawsuit": request.lawsuit,
            "notes": notes,
            "status": status,
            "fields": lead_lifecycle.build_fields(request.fields),
            "status_history": [
                lead_lifecycle.history_entry("", status, history_note, principal.id, now)
            ],
            "organization_id": organization_id,
            "created_by": principal.id,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }

        await db.leads.insert_one(lead_doc)
        lead_doc.pop("_id", None)  # insert_one mutates the dict

        duplicate_info = await LeadService.build_duplicate_info(existing) if is_duplicate else None

        logger.info(
            f"Lead created: {lead_doc['lead_id']} by {principal.id}"
            + (f" (duplicate of {existing['lead_id']} by {reason})" if is_duplicate else "")
        )
        await create_audit_log(
            action=AuditAction.LEAD_CREATED,
            actor_role=principal.role,
            actor_id=principal.id,
            organization_id=organization_id,
            resource_type="lead",
            resource_id=lead_doc["lead_id"],
            metadata={"status": status, "is_duplicate": is_duplicate},
        )

        if is_duplicate:
            message = f"Lead created but marked as DUPLICATE (matching {reason})"
        else:
            message = "Lead created successfully"

        return {
            "message": message,
            "lead": lead_doc,
            "is_duplicate": is_duplicate,
            "duplicate_info": duplicate_info,
        }

    @staticmethod
    async def find_duplicate(
        email: Optional[str],
        phone: Optional[str],
        scope: Dict[str, Any],
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """
        Find an in-scope lead with the same email, then the same phone.
        Matching is exact. Returns (lead, reason) or (None, None).
        """
        db = database.get_db()

        if email:
            existing = await db.leads.find_one({**scope, "email": email}, {"_id": 0})
            if existing:
                return existing, "email"

        if phone:
            existing = await db.leads.find_one({**scope, "phone": phone}, {"_id": 0})
            if existing:
                return existing, "phone number"

        return None, None

    @staticmethod
    async def build_duplicate_info(existing: Dict[str, Any]) -> Dict[str, Any]:
        db = database.get_db()
        creator = None
        if existing.get("created_by"):
            creator = await db.users.find_one(
                {"user_id": existing["created_by"]},
                {"_id": 0, "name": 1}
            )
        return {
            "id": existing["lead_id"],
            "name": lead_display_name(existing),
            "status": existing.get("status"),
            "created_by": creator["name"] if creator and creator.get("name") else "Unknown",
            "created_at": existing.get("created_at"),
        }

    @staticmethod
    async def list_leads(
        principal: Principal,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """List the caller's leads, newest first, with pagination."""
        db = database.get_db()
        caller = await load_caller(principal)

        filter_query = scope_filter(principal, caller.get("organization_id"))
        if status:
            filter_query["status"] = status
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            filter_query["$or"] = [
                {"first_name": pattern},
                {"last_name": pattern},
                {"email": pattern},
                {"phone": pattern},
            ]

        skip = (page - 1) * limit
        cursor = db.leads.find(
            filter_query,
            {"_id": 0}
        ).sort([("created_at", -1)]).skip(skip).limit(limit)

        leads = await cursor.to_list(length=limit)
        total = await db.leads.count_documents(filter_query)

        await LeadService.attach_users(leads)

        return {
            "leads": leads,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    @staticmethod
    async def get_lead(lead_id: str, principal: Principal, admin_only: bool = False) -> Dict[str, Any]:
        """Fetch one lead with creator and history authors resolved."""
        lead = await LeadService._load_for_caller(lead_id, principal, admin_only)
        await LeadService.attach_users([lead], include_history=True)
        return lead

    @staticmethod
    async def update_lead(
        lead_id: str,
        request: LeadUpdateRequest,
        principal: Principal,
    ) -> Dict[str, Any]:
        """General update: status transition, field replacement and truthy attributes."""
        current = await LeadService._load_for_caller(lead_id, principal, admin_only=False)

        entry = lead_lifecycle.transition(
            current.get("status"),
            request.status.value if request.status else None,
            request.status_note,
            principal.id,
        )
        set_data = lead_lifecycle.attribute_updates(request.model_dump())
        if request.fields is not None:
            set_data["fields"] = lead_lifecycle.build_fields(request.fields)

        if not entry and not set_data:
            return {
                "message": "Lead status unchanged" if request.status else "No changes applied",
                "lead": current,
                "status_changed": False,
            }

        lead = await LeadService._write(current, set_data, entry, principal)
        return {
            "message": "Lead updated successfully",
            "lead": lead,
            "status_changed": entry is not None,
        }

    @staticmethod
    async def update_lead_status(
        lead_id: str,
        status: LeadStatus,
        notes: Optional[str],
        principal: Principal,
    ) -> Dict[str, Any]:
        """Admin status transition."""
        current = await LeadService._load_for_caller(lead_id, principal, admin_only=True)

        entry = lead_lifecycle.transition(current.get("status"), status.value, notes, principal.id)
        if not entry:
            return {
                "message": "Lead status unchanged",
                "lead": current,
                "status_changed": False,
            }

        lead = await LeadService._write(current, {}, entry, principal)
        return {
            "message": "Lead status updated successfully",
            "lead": lead,
            "status_changed": True,
        }

    @staticmethod
    async def _load_for_caller(
        lead_id: str,
        principal: Principal,
        admin_only: bool,
    ) -> Dict[str, Any]:
        db = database.get_db()
        caller = await load_caller(principal)

        lead = await db.leads.find_one({"lead_id": lead_id}, {"_id": 0})
        if not lead:
            raise NotFound("Lead not found")

        if principal.is_super_admin:
            return lead

        ensure_same_organization(
            principal,
            caller.get("organization_id"),
            lead.get("organization_id"),
            LEAD_ACCESS_DENIED,
        )
        if admin_only and not principal.is_admin:
            raise AuthorizationDenied(LEAD_ACCESS_DENIED)
        if not principal.is_admin and lead.get("created_by") != principal.id:
            raise AuthorizationDenied(LEAD_ACCESS_DENIED)
        return lead

    @staticmethod
    async def _write(
        current: Dict[str, Any],
        set_data: Dict[str, Any],
        entry: Optional[Dict[str, Any]],
        principal: Principal,
    ) -> Dict[str, Any]:
        """Apply an update only if nobody else wrote the lead since it was read."""
        db = database.get_db()
        now = datetime.now(timezone.utc).isoformat()

        set_data = {**set_data, "updated_at": now}
        update: Dict[str, Any] = {"$inc": {"version": 1}}
        if entry:
            set_data["status"] = entry["to_status"]
            update["$push"] = {"status_history": entry}
        update["$set"] = set_data

        if "version" in current:
            version_filter = {"version": current["version"]}
        else:
            version_filter = {"version": {"$exists": False}}

        result = await db.leads.update_one(
            {"lead_id": current["lead_id"], **version_filter},
            update
        )
        if result.matched_count == 0:
            logger.warning(f"Concurrent update rejected for lead {current['lead_id']}")
            raise ConflictError(CONCURRENT_UPDATE_MESSAGE)

        updated = {**current, **set_data, "version": current.get("version", 0) + 1}
        if entry:
            updated["status_history"] = list(current.get("status_history") or []) + [entry]
            logger.info(
                f"Lead {current['lead_id']} status {entry['from_status']} -> {entry['to_status']} by {principal.id}"
            )
            await create_audit_log(
                action=AuditAction.LEAD_STATUS_CHANGED,
                actor_role=principal.role,
                actor_id=principal.id,
                organization_id=current.get("organization_id"),
                resource_type="lead",
                resource_id=current["lead_id"],
                before_state={"status": entry["from_status"]},
                after_state={"status": entry["to_status"]},
            )
        return updated

    @staticmethod
    async def attach_users(leads: List[Dict[str, Any]], include_history: bool = False) -> None:
        """Resolve created_by (and optionally history changed_by) to {user_id, name, email}."""
        user_ids = set()
        for lead in leads:
            if lead.get("created_by"):
                user_ids.add(lead["created_by"])
            if include_history:
                for entry in lead.get("status_history") or []:
                    if entry.get("changed_by"):
                        user_ids.add(entry["changed_by"])

        users = {}
        if user_ids:
            db = database.get_db()
            found = await db.users.find(
                {"user_id": {"$in": sorted(user_ids)}},
                {"_id": 0, "user_id": 1, "name": 1, "email": 1}
            ).to_list(length=len(user_ids))
            users = {u["user_id"]: u for u in found}

        for lead in leads:
            lead["created_by_user"] = users.get(lead.get("created_by"))
            if include_history:
                for entry in lead.get("status_history") or []:
                    entry["changed_by_user"] = users.get(entry.get("changed_by"))
