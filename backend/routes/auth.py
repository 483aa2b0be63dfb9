from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from database import database
from models import (
    LoginRequest, RegisterRequest, UpdatePasswordRequest,
    UserRole, AuditAction, Principal
)
from auth import (
    verify_password, hash_password, create_user_token, validate_password_strength,
    cookie_settings, COOKIE_NAME
)
from middleware import require_auth
from services.scoping import load_caller
from services.user_service import generate_user_id, sanitize_user, email_taken, email_match
from utils.audit import create_audit_log
from datetime import datetime, timezone
import os
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


def _registration_enabled() -> bool:
    return os.getenv("ALLOW_REGISTRATION", "true").strip().lower() == "true"


@router.post("/login")
async def login(request: Request, response: Response, credentials: LoginRequest):
    """Verify credentials and start a cookie session."""
    db = database.get_db()

    user = await db.users.find_one({"email": email_match(credentials.email)}, {"_id": 0})

    if not user or not verify_password(credentials.password, user.get("password_hash")):
        await create_audit_log(
            action=AuditAction.USER_LOGIN_FAILED,
            metadata={"email": credentials.email},
            ip_address=_client_ip(request),
        )
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if user.get("active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated"
        )

    now = datetime.now(timezone.utc).isoformat()
    await db.users.update_one({"user_id": user["user_id"]}, {"$set": {"last_login": now}})
    user["last_login"] = now

    token = create_user_token(user)
    response.set_cookie(COOKIE_NAME, token, **cookie_settings())

    await create_audit_log(
        action=AuditAction.USER_LOGIN_SUCCESS,
        actor_role=user["role"],
        actor_id=user["user_id"],
        organization_id=user.get("organization_id"),
        ip_address=_client_ip(request),
    )

    return {
        "message": "Login successful",
        "access_token": token,
        "token_type": "bearer",
        "user": sanitize_user(user),
    }


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"message": "Logged out successfully"}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: Request, response: Response, data: RegisterRequest):
    """Self-service signup. New accounts are agents without an organization."""
    if not _registration_enabled():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is disabled"
        )

    valid, message = validate_password_strength(data.password)
    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    if await email_taken(data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    db = database.get_db()
    now = datetime.now(timezone.utc).isoformat()
    user = {
        "user_id": generate_user_id(),
        "name": data.name,
        "email": data.email,
        "password_hash": hash_password(data.password),
        "role": UserRole.AGENT.value,
        "active": True,
        "organization_id": None,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
    }
    await db.users.insert_one(user)

    token = create_user_token(user)
    response.set_cookie(COOKIE_NAME, token, **cookie_settings())

    await create_audit_log(
        action=AuditAction.USER_REGISTERED,
        actor_role=UserRole.AGENT,
        actor_id=user["user_id"],
        resource_type="user",
        resource_id=user["user_id"],
        ip_address=_client_ip(request),
    )
    logger.info(f"User registered: {user['user_id']}")

    return {
        "message": "User registered successfully",
        "access_token": token,
        "token_type": "bearer",
        "user": sanitize_user(user),
    }


@router.get("/me")
async def get_me(principal: Principal = Depends(require_auth)):
    """Current user with their organization summary."""
    db = database.get_db()
    user = await load_caller(principal)

    organization = None
    if user.get("organization_id"):
        org = await db.organizations.find_one(
            {"org_id": user["organization_id"]},
            {"_id": 0, "org_id": 1, "name": 1}
        )
        if org:
            organization = {"id": org["org_id"], "name": org["name"]}

    return {**user, "organization": organization}


@router.post("/update-password")
async def update_password(
    data: UpdatePasswordRequest,
    principal: Principal = Depends(require_auth),
):
    db = database.get_db()

    if not data.current_password or not data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password and new password are required"
        )

    user = await db.users.find_one({"user_id": principal.id}, {"_id": 0})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.get("active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated"
        )

    if not verify_password(data.current_password, user.get("password_hash")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    valid, message = validate_password_strength(data.new_password)
    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    await db.users.update_one(
        {"user_id": principal.id},
        {"$set": {
            "password_hash": hash_password(data.new_password),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }}
    )
    await create_audit_log(
        action=AuditAction.PASSWORD_CHANGED,
        actor_role=principal.role,
        actor_id=principal.id,
        resource_type="user",
        resource_id=principal.id,
    )
    logger.info(f"Password updated for user {principal.id}")
    return {"message": "Password updated successfully"}
