"""
Lead API Routes

Agent-facing endpoints for intake and case updates.
Admin endpoints for organization-wide review and status transitions.

Every endpoint requires an authenticated caller; results are scoped to the
caller's organization unless they are super_admin.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from middleware import require_auth, require_admin
from models import (
    LeadStatus,
    LeadCreateRequest,
    LeadUpdateRequest,
    LeadStatusUpdateRequest,
    Principal,
)
from services.lead_service import LeadService
from services.application_types import get_fields, list_application_types
import logging

logger = logging.getLogger(__name__)

# Routers
router = APIRouter(prefix="/api/leads", tags=["leads"])
admin_router = APIRouter(prefix="/api/admin/leads", tags=["admin-leads"])


# ============================================================================
# AGENT ENDPOINTS
# ============================================================================

@router.get("")
async def list_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    principal: Principal = Depends(require_auth),
):
    """List leads in the caller's organization, newest first."""
    return await LeadService.list_leads(
        principal,
        status=status_filter.value if status_filter else None,
        search=search,
        page=page,
        limit=limit,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    request: LeadCreateRequest,
    principal: Principal = Depends(require_auth),
):
    """Create a lead; matching email or phone in scope marks it DUPLICATE."""
    return await LeadService.create_lead(request, principal)


@router.get("/application-types")
async def get_application_types(principal: Principal = Depends(require_auth)):
    """Dynamic field definitions per application type."""
    return {
        "application_types": {
            name: get_fields(name) for name in list_application_types()
        }
    }


@router.get("/{lead_id}")
async def get_lead(lead_id: str, principal: Principal = Depends(require_auth)):
    lead = await LeadService.get_lead(lead_id, principal)
    return {"lead": lead}


@router.put("/{lead_id}")
async def update_lead(
    lead_id: str,
    request: LeadUpdateRequest,
    principal: Principal = Depends(require_auth),
):
    """Update a lead. Admins and the lead's creator may change status and fields."""
    return await LeadService.update_lead(lead_id, request, principal)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================

@admin_router.get("")
async def admin_list_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    admin: Principal = Depends(require_admin),
):
    return await LeadService.list_leads(
        admin,
        status=status_filter.value if status_filter else None,
        search=search,
        page=page,
        limit=limit,
    )


@admin_router.get("/{lead_id}")
async def admin_get_lead(lead_id: str, admin: Principal = Depends(require_admin)):
    lead = await LeadService.get_lead(lead_id, admin, admin_only=True)
    return {"lead": lead}


@admin_router.put("/{lead_id}")
async def admin_update_lead_status(
    lead_id: str,
    request: LeadStatusUpdateRequest,
    admin: Principal = Depends(require_admin),
):
    """Move a lead to a new status, recording the transition in its history."""
    return await LeadService.update_lead_status(lead_id, request.status, request.notes, admin)
