"""
User administration routes.

admin manages users of their own organization; super_admin manages everyone.
"""
from fastapi import APIRouter, Depends, status
from middleware import require_admin
from models import UserCreateRequest, UserUpdateRequest, Principal
from services.user_service import UserService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin/users", tags=["admin-users"])


@router.get("")
async def list_users(admin: Principal = Depends(require_admin)):
    users = await UserService.list_users(admin)
    return {"users": users, "total": len(users)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(request: UserCreateRequest, admin: Principal = Depends(require_admin)):
    user = await UserService.create_user(request, admin)
    return {"message": "User created successfully", "user": user}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    admin: Principal = Depends(require_admin),
):
    user = await UserService.update_user(user_id, request, admin)
    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}")
async def delete_user(user_id: str, admin: Principal = Depends(require_admin)):
    await UserService.delete_user(user_id, admin)
    return {"message": "User deleted successfully"}
