"""
Organization routes.

Create and update are reserved to super_admin; members can list and view
their own organization.
"""
from fastapi import APIRouter, Depends, status
from middleware import require_auth
from models import OrganizationCreateRequest, OrganizationUpdateRequest, Principal
from services.organization_service import organization_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin/organizations", tags=["admin-organizations"])


@router.get("")
async def list_organizations(principal: Principal = Depends(require_auth)):
    organizations = await organization_service.list_organizations(principal)
    return {"organizations": organizations}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_organization(
    request: OrganizationCreateRequest,
    principal: Principal = Depends(require_auth),
):
    organization = await organization_service.create_organization(request, principal)
    return {"message": "Organization created successfully", "organization": organization}


@router.get("/{org_id}")
async def get_organization(org_id: str, principal: Principal = Depends(require_auth)):
    organization = await organization_service.get_organization(org_id, principal)
    return {"organization": organization}


@router.put("/{org_id}")
async def update_organization(
    org_id: str,
    request: OrganizationUpdateRequest,
    principal: Principal = Depends(require_auth),
):
    organization = await organization_service.update_organization(org_id, request, principal)
    return {"message": "Organization updated successfully", "organization": organization}
